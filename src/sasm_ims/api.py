from fastapi import APIRouter

from sasm_ims.modules.applications import reapplication_router
from sasm_ims.modules.applications import router as applications_router
from sasm_ims.modules.archival.router import router as archival_router
from sasm_ims.modules.audit_logs import router as audit_logs_router
from sasm_ims.modules.auth import router as auth_router
from sasm_ims.modules.auth import session_router
from sasm_ims.modules.leaves import router as leaves_router
from sasm_ims.modules.notifications import router as notifications_router
from sasm_ims.modules.office_profiles import router as office_profiles_router
from sasm_ims.modules.users.router import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(session_router, prefix="/sessions", tags=["Sessions"])
api_router.include_router(users_router, prefix="/user", tags=["User"])
api_router.include_router(
    notifications_router, prefix="/notifications", tags=["Notifications"]
)

api_router.include_router(
    office_profiles_router, prefix="/office/profiles", tags=["Office Profiles"]
)
api_router.include_router(audit_logs_router, prefix="/audit-logs", tags=["Audit Logs"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])
api_router.include_router(
    reapplication_router, prefix="/reapplications", tags=["Re-applications"]
)
api_router.include_router(leaves_router, prefix="/leaves", tags=["Leave Requests"])

api_router.include_router(archival_router, prefix="/archival", tags=["Archival"])
