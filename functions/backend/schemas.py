"""
Pydantic schemas for the Remap FastAPI backend.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from shared.types import AppRole, ContentSection, RoleAction

UUID_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}"
    r"-[0-9a-fA-F]{12}$"
)


class CamelModel(BaseModel):
    """Accepts the camelCase keys the site frontend sends."""

    model_config = ConfigDict(populate_by_name=True)


class RoleRequest(CamelModel):
    user_id: str = Field(..., alias="userId", pattern=UUID_PATTERN)
    role: AppRole
    action: RoleAction


class StatusResponse(BaseModel):
    success: bool
    message: str


class UserRolesResponse(BaseModel):
    user_id: str
    roles: list[str]


class UserRolesListResponse(BaseModel):
    users: list[UserRolesResponse]


class StorageObjectResponse(BaseModel):
    key: str
    size: Optional[int] = None


class ListBucketResponse(BaseModel):
    objects: list[StorageObjectResponse]


class SyncError(BaseModel):
    key: str
    error: str


class SyncResponse(BaseModel):
    synced: int
    errors: list[SyncError]
    source: Literal["bucket", "access-point"]


class OrganizeResponse(BaseModel):
    organized: int


class MoveImageRequest(CamelModel):
    image_key: str = Field(..., alias="imageKey", min_length=1)
    category_id: str = Field(..., alias="categoryId", min_length=1)


class StorageCredentials(CamelModel):
    access_key_id: Optional[str] = Field(None, alias="accessKeyId")
    secret_access_key: Optional[str] = Field(None, alias="secretAccessKey")
    region: Optional[str] = None
    bucket_name: Optional[str] = Field(None, alias="bucketName")

    def missing_fields(self) -> list[str]:
        return [
            alias
            for alias, value in (
                ("accessKeyId", self.access_key_id),
                ("secretAccessKey", self.secret_access_key),
                ("region", self.region),
                ("bucketName", self.bucket_name),
            )
            if not value
        ]


class ValidateCredentialsRequest(BaseModel):
    credentials: StorageCredentials


class ImageCategoryResponse(BaseModel):
    id: str
    name: str
    folder_path: str
    is_active: bool


class ImageResponse(BaseModel):
    id: str
    s3_key: str
    original_name: str
    category_id: Optional[str] = None
    file_size: Optional[int] = None
    is_processed: bool


class ContactEmailRequest(CamelModel):
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=100)
    email: EmailStr
    project_type: str = Field(..., alias="projectType", min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=5000)


class ContactEmailResponse(CamelModel):
    success: bool
    user_email: dict = Field(..., alias="userEmail")
    business_email: dict = Field(..., alias="businessEmail")


class ContactSubmissionResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    message: Optional[str] = None
    project_type: Optional[str] = None
    is_read: bool
    created_at: float


# Section-specific content fields.


class HeroContentFields(BaseModel):
    title: str = Field(..., min_length=1)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    background_image_url: Optional[str] = None


class AboutContentFields(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    team_image_url: Optional[str] = None


class ServiceFields(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    icon_name: Optional[str] = None
    image_url: Optional[str] = None


class PortfolioItemFields(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_featured: bool = False


class CustomerReviewFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    review: str = Field(..., min_length=1, max_length=2000)
    rating: int = Field(..., ge=1, le=5)
    project_type: Optional[str] = None
    image_url: Optional[str] = None


class CompanyContactFields(BaseModel):
    field_name: str = Field(..., min_length=1)
    field_value: str


class StatFields(BaseModel):
    """A headline figure such as "150+ Projects Completed"."""

    icon_name: str = Field("Users", min_length=1)
    number_value: str = Field(..., min_length=1, max_length=20)
    label: str = Field(..., min_length=1, max_length=100)


SECTION_SCHEMAS: dict[ContentSection, type[BaseModel]] = {
    ContentSection.HERO: HeroContentFields,
    ContentSection.ABOUT: AboutContentFields,
    ContentSection.SERVICES: ServiceFields,
    ContentSection.PORTFOLIO: PortfolioItemFields,
    ContentSection.REVIEWS: CustomerReviewFields,
    ContentSection.COMPANY_CONTACT: CompanyContactFields,
    ContentSection.STATS: StatFields,
}


class ContentWriteRequest(BaseModel):
    data: dict = Field(default_factory=dict)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class ContentListResponse(BaseModel):
    section: str
    items: list[dict]
