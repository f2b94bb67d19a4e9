from fastapi import APIRouter

from tutor_match.api.v1.endpoints import tutors

api_router = APIRouter()

api_router.include_router(tutors.router, tags=["tutors"])
