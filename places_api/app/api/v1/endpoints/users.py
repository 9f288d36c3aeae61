"""
User endpoints for API v1.

Provide listing, signup and login.  Signup is a multipart request
because it carries the user's image.
"""

from fastapi import APIRouter, File, Form, UploadFile, status

from places_api.app.core.errors import validate_fields
from places_api.app.core.file_upload import remove_image, save_image
from places_api.app.schemas.user import AuthResponse, UserCreate, UserListResponse, UserLogin
from places_api.app.services.user_service import UserService


router = APIRouter()


@router.get("/", response_model=UserListResponse)
async def list_users() -> UserListResponse:
    """List all users without their passwords."""
    return UserListResponse(users=await UserService.list_users())


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    image: UploadFile = File(...),
) -> AuthResponse:
    """Register a new user and return an access token."""
    data = validate_fields(UserCreate, name=name, email=email, password=password)
    image_path = await save_image(image)
    try:
        return await UserService.signup(data, image_path)
    except Exception:
        remove_image(image_path)
        raise


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin) -> AuthResponse:
    """Exchange email and password for an access token."""
    return await UserService.login(credentials.email, credentials.password)
