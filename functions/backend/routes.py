"""
HTTP routes for the Remap backend API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from backend import image_sync
from backend.auth import AuthUser
from backend.db import ContactSubmissionRecord, DbClient
from backend.dependencies import (
    get_current_user,
    get_db_client,
    get_mailer,
    get_storage_client,
    require_admin,
)
from backend.config import get_settings
from backend.mailer import (
    ContactDetails,
    Mailer,
    MailerError,
    build_confirmation_email,
    build_notification_email,
)
from backend.roles import RoleChangeRejected, change_user_role
from backend.schemas import (
    SECTION_SCHEMAS,
    ContactEmailRequest,
    ContactEmailResponse,
    ContactSubmissionResponse,
    ContentListResponse,
    ContentWriteRequest,
    CustomerReviewFields,
    ImageCategoryResponse,
    ImageResponse,
    ListBucketResponse,
    MoveImageRequest,
    OrganizeResponse,
    RoleRequest,
    StatusResponse,
    StorageObjectResponse,
    SyncResponse,
    UserRolesListResponse,
    UserRolesResponse,
    ValidateCredentialsRequest,
)
from backend.storage import StorageClient
from shared.types import ContentSection, SyncSource

logger = logging.getLogger(__name__)

router = APIRouter()


def _section(section: str) -> ContentSection:
    try:
        return ContentSection(section)
    except ValueError:
        raise HTTPException(status_code=404, detail="Unknown content section")


def _validate_fields(section: ContentSection, fields: dict) -> dict:
    schema = SECTION_SCHEMAS[section]
    try:
        return schema.model_validate(fields).model_dump()
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False),
        )


# Roles


@router.post("/manage-user-role", response_model=StatusResponse)
def manage_user_role(
    payload: RoleRequest,
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    try:
        message = change_user_role(
            db,
            actor=admin,
            user_id=payload.user_id,
            role=payload.role,
            action=payload.action,
        )
    except RoleChangeRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    return StatusResponse(success=True, message=message)


@router.get("/admin/user-roles", response_model=UserRolesListResponse)
def list_users_with_roles(
    _: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    grouped: dict[str, list[str]] = {}
    for record in db.list_all_user_roles():
        grouped.setdefault(record.user_id, []).append(record.role.value)
    return UserRolesListResponse(
        users=[
            UserRolesResponse(user_id=user_id, roles=roles)
            for user_id, roles in grouped.items()
        ]
    )


@router.get("/admin/roles/{user_id}", response_model=UserRolesResponse)
def get_user_roles(
    user_id: str,
    _: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    roles = [record.role.value for record in db.list_user_roles(user_id)]
    return UserRolesResponse(user_id=user_id, roles=roles)


# Image catalogue


@router.get("/images/bucket", response_model=ListBucketResponse)
def list_bucket(
    _: AuthUser = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage_client),
):
    objects = storage.list_objects(SyncSource.BUCKET)
    return ListBucketResponse(
        objects=[StorageObjectResponse(key=o.key, size=o.size) for o in objects]
    )


@router.post("/images/sync", response_model=SyncResponse)
def sync_images(
    _: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    result = image_sync.sync_images(db, storage, SyncSource.BUCKET)
    return result.as_dict()


@router.post("/images/sync-access-point", response_model=SyncResponse)
def sync_access_point(
    _: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    result = image_sync.sync_images(db, storage, SyncSource.ACCESS_POINT)
    return result.as_dict()


@router.post("/images/organize", response_model=OrganizeResponse)
def organize_images(
    _: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return OrganizeResponse(organized=image_sync.organize_images(db))


@router.post("/images/move", response_model=StatusResponse)
def move_image(
    payload: MoveImageRequest,
    _: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    try:
        image_sync.move_image(db, payload.image_key, payload.category_id)
    except image_sync.ImageNotFound:
        raise HTTPException(status_code=404, detail="Image not found")
    return StatusResponse(success=True, message="Image moved")


@router.post("/images/test-connection", response_model=StatusResponse)
def check_storage_connection(
    _: AuthUser = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage_client),
):
    return StatusResponse(**image_sync.check_connection(storage))


@router.post("/images/validate-credentials", response_model=StatusResponse)
def validate_credentials(
    payload: ValidateCredentialsRequest,
    _: AuthUser = Depends(require_admin),
):
    """
    Checks that a credential set is complete. Nothing is stored: credentials
    come from the deployment environment.
    """
    missing = payload.credentials.missing_fields()
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"All credential fields are required: {', '.join(missing)}",
        )
    return StatusResponse(
        success=True,
        message="Credentials are complete; update them in the deployment environment",
    )


@router.get("/images/categories", response_model=list[ImageCategoryResponse])
def list_image_categories(
    _: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return [c.as_dict() for c in db.list_image_categories(active_only=False)]


@router.get("/images", response_model=list[ImageResponse])
def list_images(
    category_id: str | None = None,
    _: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return [i.as_dict() for i in db.list_images(category_id=category_id)]


# Contact form


@router.post("/send-contact-email", response_model=ContactEmailResponse)
def send_contact_email(
    payload: ContactEmailRequest,
    db: DbClient = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
):
    settings = get_settings()
    db.save_contact_submission(
        ContactSubmissionRecord(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            message=payload.message,
            project_type=payload.project_type,
        )
    )
    contact = ContactDetails(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        project_type=payload.project_type,
        message=payload.message,
    )
    try:
        user_email = mailer.send(
            build_confirmation_email(
                contact,
                sender=settings.contact_from_address,
                whatsapp_number=settings.contact_whatsapp_number,
            )
        )
        business_email = mailer.send(
            build_notification_email(
                contact,
                sender=settings.contact_notify_from_address,
                recipient=settings.contact_notify_address,
            )
        )
    except MailerError as e:
        logger.error("Error sending contact email: %s", e)
        raise HTTPException(status_code=500, detail="Failed to send email")

    logger.info("Contact emails sent for a %s enquiry", payload.project_type)
    return ContactEmailResponse(
        success=True, user_email=user_email, business_email=business_email
    )


@router.get(
    "/admin/contact-submissions", response_model=list[ContactSubmissionResponse]
)
def list_contact_submissions(
    _: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return [s.as_dict() for s in db.list_contact_submissions()]


@router.post(
    "/admin/contact-submissions/{submission_id}/read",
    response_model=StatusResponse,
)
def mark_contact_submission_read(
    submission_id: str,
    _: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    if not db.mark_contact_submission_read(submission_id):
        raise HTTPException(status_code=404, detail="Submission not found")
    return StatusResponse(success=True, message="Marked as read")


# Site content


@router.get("/content/{section}", response_model=ContentListResponse)
def list_public_content(section: str, db: DbClient = Depends(get_db_client)):
    content_section = _section(section)
    records = db.list_content(content_section.value, active_only=True)
    return ContentListResponse(
        section=content_section.value, items=[r.as_dict() for r in records]
    )


@router.post("/reviews", status_code=201)
def submit_review(
    payload: CustomerReviewFields, db: DbClient = Depends(get_db_client)
):
    """Public review form. Reviews stay hidden until an admin activates them."""
    record = db.create_content(
        ContentSection.REVIEWS.value, payload.model_dump(), is_active=False
    )
    return record.as_dict()


@router.get("/admin/content/{section}", response_model=ContentListResponse)
def list_all_content(
    section: str,
    _: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    content_section = _section(section)
    records = db.list_content(content_section.value)
    return ContentListResponse(
        section=content_section.value, items=[r.as_dict() for r in records]
    )


@router.post("/admin/content/{section}", status_code=201)
def create_content(
    section: str,
    payload: ContentWriteRequest,
    _: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    content_section = _section(section)
    fields = _validate_fields(content_section, payload.data)
    record = db.create_content(
        content_section.value,
        fields,
        is_active=True if payload.is_active is None else payload.is_active,
        sort_order=payload.sort_order or 0,
    )
    return record.as_dict()


@router.put("/admin/content/{section}/{item_id}")
def update_content(
    section: str,
    item_id: str,
    payload: ContentWriteRequest,
    _: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    content_section = _section(section)
    existing = db.get_content(content_section.value, item_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Content not found")
    fields = None
    if payload.data:
        fields = _validate_fields(content_section, {**existing.fields, **payload.data})
    record = db.update_content(
        content_section.value,
        item_id,
        fields=fields,
        is_active=payload.is_active,
        sort_order=payload.sort_order,
    )
    if not record:
        raise HTTPException(status_code=404, detail="Content not found")
    return record.as_dict()


@router.delete("/admin/content/{section}/{item_id}", response_model=StatusResponse)
def delete_content(
    section: str,
    item_id: str,
    _: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    content_section = _section(section)
    if not db.delete_content(content_section.value, item_id):
        raise HTTPException(status_code=404, detail="Content not found")
    return StatusResponse(success=True, message="Content deleted")
