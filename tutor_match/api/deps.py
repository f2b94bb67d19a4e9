from fastapi import Request

from tutor_match.services.tutor_directory import TutorDirectoryClient


def get_directory_client(request: Request) -> TutorDirectoryClient:
    """Shared tutor directory client created at startup"""
    return request.app.state.directory_client
