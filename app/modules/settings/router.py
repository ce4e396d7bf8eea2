from fastapi import APIRouter, Depends

from app.dependencies.dbDependecies import db_dependency
from app.dependencies.userDependencies import user_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.settings.schemas import SettingsUpdate, SettingsOut
from app.modules.settings.service import SettingsService

settings_router = APIRouter()


@settings_router.get("", response_model=SettingsOut)
def get_settings(db: db_dependency, current_user: user_dependency):
    return SettingsService(db).get_settings(current_user)


@settings_router.patch("", response_model=SettingsOut)
def update_settings(
    body: SettingsUpdate,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_admin())
):
    return SettingsService(db).update_settings(body, current_user)
