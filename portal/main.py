# portal/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from portal.config import settings
from portal.database import Base, engine
from portal.routers import auth, semesters, courses, admin_course, enrollments, grades, exams, notifications

# 註冊所有資料表
from portal.models import (  # noqa: F401
    user, semester, course, course_prerequisite, enrollment, enrollment_event,
    grade, grade_component, exam, notification,
)

import time
import logging
from fastapi import Request
from portal.logging_config import setup_logging


setup_logging()
logger = logging.getLogger("portal")


# 建立資料表（若不存在）
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Academic Records Backend", version="1.0.0")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        ms = int((time.time() - start) * 1000)
        logger.info("%s %s -> %s (%dms)", request.method, request.url.path, response.status_code, ms)
        return response
    except Exception:
        ms = int((time.time() - start) * 1000)
        logger.exception("Unhandled error %s %s (%dms)", request.method, request.url.path, ms)
        raise


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router)
app.include_router(semesters.router)
app.include_router(courses.router)
app.include_router(admin_course.router)
app.include_router(enrollments.router)
app.include_router(grades.router)
app.include_router(exams.router)
app.include_router(notifications.router)


@app.get("/")
def root():
    return {"message": "Academic records backend is running!"}
