import logging

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from shared.config import ensure_secure_config, get_settings
from shared.errors import register_exception_handlers
from shared.log_config import configure_logging
from services.user_management.controllers.user_service import router as user_router
from services.user_management.controllers.school_service import router as school_router
from services.user_management.controllers.subject_service import router as subject_router
from services.user_management.controllers.teacher_service import router as teacher_router
from services.user_management.controllers.enrollment_service import router as enrollment_router
from services.learning_content.controllers.content_service import router as content_router
from services.learning_content.controllers.submission_service import router as submission_router
from services.learning_content.controllers.dashboard_service import router as dashboard_router

settings = get_settings()
configure_logging(settings.log_level)
ensure_secure_config(settings)

logger = logging.getLogger(__name__)

app = FastAPI(title="TeachWave Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

@app.get("/")
def health_check():
    return {"status": "TeachWave Backend is running"}


app.include_router(user_router)
app.include_router(school_router)
app.include_router(subject_router)
app.include_router(teacher_router)
app.include_router(enrollment_router)
app.include_router(content_router)
app.include_router(submission_router)
app.include_router(dashboard_router)

logger.info("auto-grant on upload is %s", "enabled" if settings.auto_grant_on_upload else "disabled")
