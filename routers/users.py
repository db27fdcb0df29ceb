from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from config import settings
from dependencies import ACCESS_COOKIE, REFRESH_COOKIE, get_current_user, get_user_service
from responses import ok
from schemas import ChangePasswordRequest, LoginRequest, RefreshTokenRequest, UpdateAccountRequest
from services.users import UserService

router = APIRouter()


def _set_auth_cookies(response: JSONResponse, access_token: str, refresh_token: str) -> JSONResponse:
    for key, value in ((ACCESS_COOKIE, access_token), (REFRESH_COOKIE, refresh_token)):
        response.set_cookie(key, value, httponly=True, secure=settings.COOKIE_SECURE, samesite="lax")
    return response


def _clear_auth_cookies(response: JSONResponse) -> JSONResponse:
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(key, httponly=True, secure=settings.COOKIE_SECURE, samesite="lax")
    return response


@router.post("/register")
def register(
    full_name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None),
    service: UserService = Depends(get_user_service),
):
    user = service.register(full_name, email, username, password, avatar, cover_image)
    return ok(user, "User registered successfully", status_code=201)


@router.post("/login")
def login(payload: LoginRequest, service: UserService = Depends(get_user_service)):
    result = service.login(payload.username, payload.email, payload.password)
    response = ok(result, "User logged in successfully")
    return _set_auth_cookies(response, result["access_token"], result["refresh_token"])


@router.post("/logout")
def logout(
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.logout(current_user["_id"])
    return _clear_auth_cookies(ok({}, "User logged out"))


@router.post("/refresh-token")
def refresh_token(
    request: Request,
    payload: Optional[RefreshTokenRequest] = None,
    service: UserService = Depends(get_user_service),
):
    incoming = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    tokens = service.refresh_access_token(incoming)
    response = ok(tokens, "Access token refreshed")
    return _set_auth_cookies(response, tokens["access_token"], tokens["refresh_token"])


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.change_password(current_user["_id"], payload.old_password, payload.new_password)
    return ok({}, "Password changed successfully")


@router.get("/current-user")
def current_user_info(current_user: Dict[str, Any] = Depends(get_current_user)):
    return ok(current_user, "Current user fetched successfully")


@router.patch("/update-account")
def update_account(
    payload: UpdateAccountRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_account(current_user["_id"], payload.full_name, payload.email)
    return ok(user, "Account details updated successfully")


@router.patch("/avatar")
def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_avatar(current_user["_id"], avatar)
    return ok(user, "Avatar updated successfully")


@router.patch("/cover-image")
def update_cover_image(
    cover_image: Optional[UploadFile] = File(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_cover_image(current_user["_id"], cover_image)
    return ok(user, "Cover image updated successfully")


@router.get("/c/{username}")
def channel_profile(
    username: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    channel = service.channel_profile(username, current_user["_id"])
    return ok(channel, "Channel fetched successfully")


@router.get("/history")
def watch_history(
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    history = service.watch_history(current_user["_id"])
    if not history:
        return ok(history, "Watch history is empty")
    return ok(history, "Watch history fetched successfully")
