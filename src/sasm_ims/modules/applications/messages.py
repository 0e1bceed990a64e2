"""
Applicant-facing messages for application status changes.
"""

from sasm_ims.modules.applications.models import Application, ApplicationStatus, Position
from sasm_ims.modules.notifications.models import NotificationType

POSITION_TITLES = {
    Position.STUDENT_ASSISTANT: "Student Assistant",
    Position.STUDENT_MARSHAL: "Student Marshal",
}

# status -> (title, message template, type); "{position}" is the position title
STATUS_MESSAGES: dict[ApplicationStatus, tuple[str, str, NotificationType]] = {
    ApplicationStatus.UNDER_REVIEW: (
        "Application Under Review",
        "Your application for the {position} position is now under review. "
        "We will notify you of any updates.",
        NotificationType.INFO,
    ),
    ApplicationStatus.INTERVIEW_SCHEDULED: (
        "Interview Scheduled",
        "An interview has been scheduled for your {position} application.",
        NotificationType.INFO,
    ),
    ApplicationStatus.PASSED_INTERVIEW: (
        "Interview Passed!",
        "Congratulations! You have passed the interview for the {position} position. "
        "You will now need to complete the required hours before final hiring.",
        NotificationType.SUCCESS,
    ),
    ApplicationStatus.FAILED_INTERVIEW: (
        "Interview Results",
        "Thank you for participating in the interview for the {position} position. "
        "Unfortunately, we will not be moving forward at this time.",
        NotificationType.ERROR,
    ),
    ApplicationStatus.HOURS_COMPLETED: (
        "Hours Completed!",
        "You have completed the required hours for the {position} position. "
        "Your performance will be reviewed for the final hiring decision.",
        NotificationType.SUCCESS,
    ),
    ApplicationStatus.ACCEPTED: (
        "Application Accepted!",
        "Congratulations! Your application for the {position} position has been accepted.",
        NotificationType.SUCCESS,
    ),
    ApplicationStatus.REJECTED: (
        "Application Status Update",
        "We regret to inform you that your application for the {position} position "
        "was not selected at this time. Thank you for your interest.",
        NotificationType.ERROR,
    ),
    ApplicationStatus.WITHDRAWN: (
        "Application Withdrawn",
        "Your application for the {position} position has been withdrawn.",
        NotificationType.INFO,
    ),
    ApplicationStatus.ON_HOLD: (
        "Application On Hold",
        "Your application for the {position} position has been put on hold temporarily. "
        "We will update you when there are further developments.",
        NotificationType.INFO,
    ),
}


def build_status_message(
    application: Application, hr_comments: str | None = None
) -> tuple[str, str, NotificationType]:
    """Title, message and type telling an applicant about their application's status."""
    position = POSITION_TITLES.get(application.position, "scholarship")
    title, template, notification_type = STATUS_MESSAGES.get(
        application.status,
        (
            "Application Status Update",
            "The status of your application for the {position} position has been updated.",
            NotificationType.INFO,
        ),
    )
    message = template.format(position=position)

    if application.status == ApplicationStatus.INTERVIEW_SCHEDULED and application.interview_date:
        details = [f"Date: {application.interview_date.strftime('%A, %B %d, %Y')}"]
        if application.interview_time:
            details.append(f"Time: {application.interview_time}")
        if application.interview_location:
            details.append(f"Location: {application.interview_location}")
        message += "\n\n" + "\n".join(details)

    if hr_comments and hr_comments.strip():
        message += f"\n\nAdditional notes: {hr_comments.strip()}"

    return title, message, notification_type
