from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from app.common.uploads import MB, save_upload
from app.dependencies.dbDependecies import db_dependency
from app.dependencies.userDependencies import user_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import UserOut
from app.modules.users.schemas import UserCreate, UserUpdate, SelfUpdate, BlockRequest, BirthdayGreeting
from app.modules.users.service import UserService

users_router = APIRouter()


@users_router.post("/upload")
async def upload_user_file(
    request: Request,
    current_user: user_dependency,
    file: UploadFile = File(...)
):
    """Sube fotos de cédula, licencia o perfil."""
    return await save_upload(request, file, max_bytes=10 * MB, extension_fallback=True)


@users_router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_admin())
):
    return UserService(db).create_user(body)


@users_router.get("", response_model=List[UserOut])
def list_users(db: db_dependency, current_user = Depends(AuthDependencies.require_admin())):
    return UserService(db).list_users()


@users_router.get("/me", response_model=UserOut)
def get_me(current_user: user_dependency):
    return current_user


@users_router.patch("/me", response_model=UserOut)
def update_me(body: SelfUpdate, db: db_dependency, current_user: user_dependency):
    return UserService(db).update_self(current_user, body)


@users_router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: UUID, db: db_dependency, current_user = Depends(AuthDependencies.require_admin())):
    return UserService(db).get_user(user_id)


@users_router.get("/{user_id}/birthday-greeting", response_model=BirthdayGreeting)
def birthday_greeting(user_id: UUID, db: db_dependency, current_user = Depends(AuthDependencies.require_admin())):
    return UserService(db).birthday_greeting(user_id)


@users_router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: UUID,
    body: UserUpdate,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_admin())
):
    return UserService(db).update_user(user_id, body)


@users_router.patch("/{user_id}/block", response_model=UserOut)
def block_user(
    user_id: UUID,
    db: db_dependency,
    body: Optional[BlockRequest] = None,
    current_user = Depends(AuthDependencies.require_admin())
):
    return UserService(db).set_blocked(user_id, body.blocked if body else None)


@users_router.delete("/{user_id}")
def delete_user(user_id: UUID, db: db_dependency, current_user = Depends(AuthDependencies.require_admin())):
    return UserService(db).delete_user(user_id)
