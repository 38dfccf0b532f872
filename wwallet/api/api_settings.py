from fastapi import APIRouter

from wwallet.api.responses import dump
from wwallet.schemas.api_settings import ApiSettingsOut, ToggleApiSchema, UpdateDomainSchema
from wwallet.services import api_settings
from wwallet.services.auth import current_user_dependency, db_dependency

router = APIRouter(prefix="/api/api-settings")


@router.get("")
def get_settings(db: db_dependency, user: current_user_dependency):
    return dump(ApiSettingsOut, api_settings.get_or_create(db, user.id))


@router.post("/toggle")
def toggle(form: ToggleApiSchema, db: db_dependency, user: current_user_dependency):
    return dump(ApiSettingsOut, api_settings.toggle(db, user.id, form.enabled))


@router.post("/generate-token")
def generate_token(db: db_dependency, user: current_user_dependency):
    return dump(ApiSettingsOut, api_settings.generate_token(db, user.id))


@router.post("/revoke-token")
def revoke_token(db: db_dependency, user: current_user_dependency):
    return dump(ApiSettingsOut, api_settings.revoke_token(db, user.id))


@router.post("/update-domain")
def update_domain(form: UpdateDomainSchema, db: db_dependency, user: current_user_dependency):
    domain = str(form.domain).rstrip("/")
    return dump(ApiSettingsOut, api_settings.update_domain(db, user.id, domain))
