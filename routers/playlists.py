from typing import Any, Dict

from fastapi import APIRouter, Depends

from dependencies import get_current_user, get_playlist_service
from responses import ok
from schemas import PlaylistRequest
from services.playlists import PlaylistService

router = APIRouter()


@router.post("")
def create_playlist(
    payload: PlaylistRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service),
):
    playlist = service.create_playlist(current_user["_id"], payload.name, payload.description)
    return ok(playlist, "Playlist created successfully", status_code=201)


@router.get("/user/{user_id}")
def get_user_playlists(
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service),
):
    playlists = service.user_playlists(user_id)
    if not playlists:
        return ok(playlists, "No playlists found for this user")
    return ok(playlists, "Playlists fetched successfully")


@router.get("/{playlist_id}")
def get_playlist(
    playlist_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service),
):
    playlist = service.get_playlist(playlist_id)
    return ok(playlist, "Playlist fetched successfully")


@router.patch("/add/{video_id}/{playlist_id}")
def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service),
):
    playlist = service.add_video(playlist_id, video_id, current_user["_id"])
    return ok(playlist, "Video added to playlist")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service),
):
    playlist = service.remove_video(playlist_id, video_id, current_user["_id"])
    return ok(playlist, "Video removed from playlist")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: str,
    payload: PlaylistRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service),
):
    playlist = service.update_playlist(playlist_id, current_user["_id"], payload.name, payload.description)
    return ok(playlist, "Playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service),
):
    service.delete_playlist(playlist_id, current_user["_id"])
    return ok({}, "Playlist deleted successfully")
