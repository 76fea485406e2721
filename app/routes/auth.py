"""
Auth routes - register, login and current user
"""
from fastapi import APIRouter, HTTPException, status, Depends
from app.config.database import Collections
from app.database.db_operations import db_ops
from app.models.user import LoginResponse, UserCreate, UserLogin, UserResponse
from app.utils.auth import create_access_token, get_current_user, hash_password, verify_password
from app.utils.helpers import serialize_doc

router = APIRouter(prefix="/auth", tags=["Auth"])

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate):
    existing = await db_ops.get_one(Collections.USERS, {"username": user.username})
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already taken"
        )

    created = await db_ops.create(Collections.USERS, {
        "username": user.username,
        "password_hash": hash_password(user.password),
    })
    return serialize_doc(created)

@router.post("/login", response_model=LoginResponse)
async def login(credentials: UserLogin):
    """Authenticate and return a JWT whose subject is the username"""
    user = await db_ops.get_one(Collections.USERS, {"username": credentials.username})
    if not user or not verify_password(credentials.password, user.get("password_hash", "")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    token = create_access_token({"sub": user["username"], "user_id": str(user["_id"])})
    return LoginResponse(access_token=token, user=UserResponse(**serialize_doc(user)))

@router.get("/me", response_model=UserResponse)
async def me(current_user: dict = Depends(get_current_user)):
    user = await db_ops.get_one(Collections.USERS, {"username": current_user["sub"]})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return serialize_doc(user)
