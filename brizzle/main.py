import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brizzle import config
from brizzle.database import db, create_indexes
from brizzle.errors import register_error_handlers
from brizzle.auth.auth_router import router as auth_router
from brizzle.users.user_router import router as user_router
from brizzle.users.document_router import router as document_router
from brizzle.courses.course_router import router as course_router
from brizzle.courses.enrollment_router import router as enrollment_router
from brizzle.resources.resource_router import router as resource_router
from brizzle.progress.progress_router import router as progress_router
from brizzle.progress.vocabulary_router import router as vocabulary_router
from brizzle.system.health_router import router as health_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger("brizzle")

app = FastAPI(title="Brizzle TOEIC LMS")


@app.on_event("startup")
async def startup_event():
    if not config.JWT_SECRET_KEY:
        logger.warning("JWT_SECRET_KEY is not set; using the development secret")
    await create_indexes(db)


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# ==================== ROUTER REGISTRATION ====================
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(document_router)
app.include_router(course_router)
app.include_router(enrollment_router)
app.include_router(resource_router)
app.include_router(progress_router)
app.include_router(vocabulary_router)
app.include_router(health_router)
# ============================================================
