"""
Place endpoints for API v1.

Reads are public.  Creating, updating and deleting a place require a
bearer token; the authenticated ``CurrentUser`` is passed explicitly
to ``PlaceService``.  Place creation is a multipart request carrying
the image; the stored file is removed again if the request fails.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status

from places_api.app.core.errors import validate_fields
from places_api.app.core.file_upload import remove_image, save_image
from places_api.app.core.geocoding import GeoResolver, get_geocoder
from places_api.app.core.security import CurrentUser, get_current_user
from places_api.app.schemas.place import (
    MessageResponse,
    PlaceCreate,
    PlaceListResponse,
    PlaceResponse,
    PlaceUpdate,
)
from places_api.app.services.place_service import PlaceService


router = APIRouter()


@router.get("/{place_id}", response_model=PlaceResponse)
async def get_place(place_id: str) -> PlaceResponse:
    """Retrieve a single place by its id.  Responds 404 if it does not exist."""
    return PlaceResponse(place=await PlaceService.get_place(place_id))


@router.get("/user/{user_id}", response_model=PlaceListResponse)
async def list_user_places(user_id: str) -> PlaceListResponse:
    """List the places of a user in the order they were created."""
    return PlaceListResponse(places=await PlaceService.list_places_for_user(user_id))


@router.post("/", response_model=PlaceResponse, status_code=status.HTTP_201_CREATED)
async def create_place(
    title: str = Form(...),
    description: str = Form(...),
    address: str = Form(...),
    image: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    geocoder: GeoResolver = Depends(get_geocoder),
) -> PlaceResponse:
    """Create a place owned by the authenticated user.

    The address is resolved to coordinates before the place is stored.
    """
    data = validate_fields(PlaceCreate, title=title, description=description, address=address)
    image_path = await save_image(image)
    try:
        place = await PlaceService.create_place(data, image_path, current_user, geocoder)
    except Exception:
        remove_image(image_path)
        raise
    return PlaceResponse(place=place)


@router.patch("/{place_id}", response_model=PlaceResponse)
async def update_place(
    place_id: str,
    updates: PlaceUpdate,
    current_user: CurrentUser = Depends(get_current_user),
) -> PlaceResponse:
    """Update title and description.  Only the creator may do this."""
    return PlaceResponse(place=await PlaceService.update_place(place_id, updates, current_user))


@router.delete("/{place_id}", response_model=MessageResponse)
async def delete_place(
    place_id: str,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    """Delete a place owned by the authenticated user.

    The image file is removed in the background after the deletion
    has been committed; a failure there does not affect the response.
    """
    place = await PlaceService.delete_place(place_id, current_user)
    background_tasks.add_task(remove_image, place.image)
    return MessageResponse(message="Deleted place.")
