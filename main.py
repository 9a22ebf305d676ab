from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
import logging
import time
import uvicorn

from examdesk.core.config import settings, get_cors_origins
from examdesk.api import (
    assessment_templates, assessments, assignments, auth, companies, exam_sets, exams, managers, questions,
    results
)
from examdesk.db.base import Base, engine

# Import all models to ensure SQLAlchemy can create the tables
from examdesk.models import Assessment, ExamAssignment, ExamResult, Manager
from examdesk.schemas.assessment import AssessmentResponse
from examdesk.schemas.assignment import AssignmentResponse
from examdesk.schemas.company import ManagerResponse
from examdesk.schemas.result import ExamResultResponse
from examdesk.utils.errors import ServiceError

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
)

# ORM objects that may travel in an error's data field
_ERROR_DATA_SCHEMAS = {
    ExamResult: ExamResultResponse,
    ExamAssignment: AssignmentResponse,
    Manager: ManagerResponse,
    Assessment: AssessmentResponse,
}


@app.on_event("startup")
async def startup_event():
    # Create tables
    Base.metadata.create_all(bind=engine)

# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response

def _serialize_error_data(data):
    schema = _ERROR_DATA_SCHEMAS.get(type(data))
    if schema is not None:
        return schema.model_validate(data).model_dump(mode="json")
    return jsonable_encoder(data)

@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    content = {"success": False, "message": exc.message}
    if exc.data is not None:
        content["data"] = _serialize_error_data(exc.data)
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status, content=content)

@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(location) or "body"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "Input data is not valid", "errors": errors},
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
    )

@app.get("/")
def read_root():
    return {"message": "We're up! 🍾"}

app.include_router(auth.router, prefix=settings.API_V1_STR)
app.include_router(companies.router, prefix=settings.API_V1_STR)
app.include_router(managers.router, prefix=settings.API_V1_STR)
app.include_router(questions.router, prefix=settings.API_V1_STR)
app.include_router(exams.router, prefix=settings.API_V1_STR)
app.include_router(exam_sets.router, prefix=settings.API_V1_STR)
app.include_router(assignments.router, prefix=settings.API_V1_STR)
app.include_router(results.router, prefix=settings.API_V1_STR)
app.include_router(assessment_templates.router, prefix=settings.API_V1_STR)
app.include_router(assessment_templates.steps_router, prefix=settings.API_V1_STR)
app.include_router(assessment_templates.questions_router, prefix=settings.API_V1_STR)
app.include_router(assessments.router, prefix=settings.API_V1_STR)

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
