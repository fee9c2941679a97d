"""
System settings endpoints
Company defaults and the terms printed on documents
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qms.api.deps import ADMIN_ONLY, STAFF_ROLES, RoleChecker, get_db, success
from qms.models.auth import User
from qms.schemas.common import ApiResponse
from qms.schemas.settings import SettingsResponse, SettingsUpdate, TermsResponse, TermsUpdate
from qms.services.settings_service import SettingsService

router = APIRouter()


@router.get("", response_model=ApiResponse[SettingsResponse])
def get_settings(
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    """Current settings; the defaults are stored on first read"""
    return success(SettingsService(db, current_user).get())


@router.put("", response_model=ApiResponse[SettingsResponse])
def update_settings(
    settings_in: SettingsUpdate,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    row = SettingsService(db, current_user).update(settings_in)
    return success(row, "Settings updated successfully")


@router.get("/terms", response_model=ApiResponse[TermsResponse])
def get_terms(
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    return success(SettingsService(db, current_user).get())


@router.put("/terms", response_model=ApiResponse[TermsResponse])
def update_terms(
    terms_in: TermsUpdate,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    row = SettingsService(db, current_user).update(terms_in)
    return success(row, "Terms and conditions updated successfully")
