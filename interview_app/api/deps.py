from fastapi import Request

from interview_app.services.session_controller import SessionController


def get_controller(request: Request) -> SessionController:
    return request.app.state.controller
