"""
Archival Module

Retention pipeline moving old rejected and disapproved records into archive
tables, and purging archives after their retention period.
"""
