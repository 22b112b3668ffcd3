"""
Database abstraction for Postgres and an in-memory test implementation.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    Integer,
    String,
    create_engine,
    delete,
    select,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.types import AppRole


def _new_id() -> str:
    return uuid.uuid4().hex


class DbClient(Protocol):
    """Interface for database access."""

    def has_role(self, user_id: str, role: AppRole) -> bool:
        ...

    def list_user_roles(self, user_id: str) -> list["UserRoleRecord"]:
        ...

    def list_all_user_roles(self) -> list["UserRoleRecord"]:
        ...

    def add_user_role(self, user_id: str, role: AppRole) -> "UserRoleRecord":
        ...

    def remove_user_role(self, user_id: str, role: AppRole) -> int:
        ...

    def create_image_category(
        self, name: str, folder_path: str, is_active: bool = True
    ) -> "ImageCategoryRecord":
        ...

    def list_image_categories(
        self, active_only: bool = True
    ) -> list["ImageCategoryRecord"]:
        ...

    def get_image_by_key(self, s3_key: str) -> Optional["ImageRecord"]:
        ...

    def create_image(self, image: "ImageRecord") -> "ImageRecord":
        ...

    def list_images(
        self, *, category_id: Optional[str] = None, uncategorized: bool = False
    ) -> list["ImageRecord"]:
        ...

    def set_image_category(self, image_id: str, category_id: str) -> bool:
        ...

    def save_contact_submission(
        self, submission: "ContactSubmissionRecord"
    ) -> "ContactSubmissionRecord":
        ...

    def list_contact_submissions(self) -> list["ContactSubmissionRecord"]:
        ...

    def mark_contact_submission_read(self, submission_id: str) -> bool:
        ...

    def create_content(
        self,
        section: str,
        fields: dict,
        *,
        is_active: bool = True,
        sort_order: int = 0,
    ) -> "ContentRecord":
        ...

    def get_content(self, section: str, item_id: str) -> Optional["ContentRecord"]:
        ...

    def update_content(
        self,
        section: str,
        item_id: str,
        *,
        fields: Optional[dict] = None,
        is_active: Optional[bool] = None,
        sort_order: Optional[int] = None,
    ) -> Optional["ContentRecord"]:
        ...

    def delete_content(self, section: str, item_id: str) -> bool:
        ...

    def list_content(
        self, section: str, active_only: bool = False
    ) -> list["ContentRecord"]:
        ...


@dataclass
class UserRoleRecord:
    user_id: str
    role: AppRole
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role": self.role.value,
            "created_at": self.created_at,
        }


@dataclass
class ImageCategoryRecord:
    name: str
    folder_path: str
    is_active: bool = True
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "folder_path": self.folder_path,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }


@dataclass
class ImageRecord:
    s3_key: str
    original_name: str
    category_id: Optional[str] = None
    file_size: Optional[int] = None
    is_processed: bool = False
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "s3_key": self.s3_key,
            "original_name": self.original_name,
            "category_id": self.category_id,
            "file_size": self.file_size,
            "is_processed": self.is_processed,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class ContactSubmissionRecord:
    first_name: str
    last_name: str
    email: str
    message: Optional[str] = None
    project_type: Optional[str] = None
    is_read: bool = False
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "message": self.message,
            "project_type": self.project_type,
            "is_read": self.is_read,
            "created_at": self.created_at,
        }


@dataclass
class ContentRecord:
    section: str
    fields: dict
    is_active: bool = True
    sort_order: int = 0
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            **self.fields,
            "id": self.id,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def _content_sort_key(record: ContentRecord) -> tuple:
    return (record.sort_order, record.created_at)


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.user_roles: Dict[str, UserRoleRecord] = {}
        self.image_categories: Dict[str, ImageCategoryRecord] = {}
        self.images: Dict[str, ImageRecord] = {}
        self.contact_submissions: Dict[str, ContactSubmissionRecord] = {}
        self.content: Dict[tuple[str, str], ContentRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.user_roles.clear()
        self.image_categories.clear()
        self.images.clear()
        self.contact_submissions.clear()
        self.content.clear()

    def has_role(self, user_id: str, role: AppRole) -> bool:
        return any(
            record.user_id == user_id and record.role == role
            for record in self.user_roles.values()
        )

    def list_user_roles(self, user_id: str) -> list[UserRoleRecord]:
        return [r for r in self.user_roles.values() if r.user_id == user_id]

    def list_all_user_roles(self) -> list[UserRoleRecord]:
        return sorted(
            self.user_roles.values(), key=lambda r: (r.user_id, r.created_at)
        )

    def add_user_role(self, user_id: str, role: AppRole) -> UserRoleRecord:
        record = UserRoleRecord(user_id=user_id, role=role)
        self.user_roles[record.id] = record
        return record

    def remove_user_role(self, user_id: str, role: AppRole) -> int:
        matching = [
            record_id
            for record_id, record in self.user_roles.items()
            if record.user_id == user_id and record.role == role
        ]
        for record_id in matching:
            del self.user_roles[record_id]
        return len(matching)

    def create_image_category(
        self, name: str, folder_path: str, is_active: bool = True
    ) -> ImageCategoryRecord:
        record = ImageCategoryRecord(
            name=name, folder_path=folder_path, is_active=is_active
        )
        self.image_categories[record.id] = record
        return record

    def list_image_categories(
        self, active_only: bool = True
    ) -> list[ImageCategoryRecord]:
        categories = sorted(
            self.image_categories.values(), key=lambda c: c.name
        )
        if active_only:
            return [c for c in categories if c.is_active]
        return categories

    def get_image_by_key(self, s3_key: str) -> Optional[ImageRecord]:
        for image in self.images.values():
            if image.s3_key == s3_key:
                return image
        return None

    def create_image(self, image: ImageRecord) -> ImageRecord:
        if self.get_image_by_key(image.s3_key):
            raise ValueError(f"Image already exists: {image.s3_key}")
        self.images[image.id] = image
        return image

    def list_images(
        self, *, category_id: Optional[str] = None, uncategorized: bool = False
    ) -> list[ImageRecord]:
        images = sorted(self.images.values(), key=lambda i: i.created_at)
        if uncategorized:
            return [i for i in images if i.category_id is None]
        if category_id is not None:
            return [i for i in images if i.category_id == category_id]
        return images

    def set_image_category(self, image_id: str, category_id: str) -> bool:
        image = self.images.get(image_id)
        if not image:
            return False
        image.category_id = category_id
        image.updated_at = time.time()
        return True

    def save_contact_submission(
        self, submission: ContactSubmissionRecord
    ) -> ContactSubmissionRecord:
        self.contact_submissions[submission.id] = submission
        return submission

    def list_contact_submissions(self) -> list[ContactSubmissionRecord]:
        return sorted(
            self.contact_submissions.values(),
            key=lambda s: s.created_at,
            reverse=True,
        )

    def mark_contact_submission_read(self, submission_id: str) -> bool:
        submission = self.contact_submissions.get(submission_id)
        if not submission:
            return False
        submission.is_read = True
        return True

    def create_content(
        self,
        section: str,
        fields: dict,
        *,
        is_active: bool = True,
        sort_order: int = 0,
    ) -> ContentRecord:
        record = ContentRecord(
            section=section,
            fields=dict(fields),
            is_active=is_active,
            sort_order=sort_order,
        )
        self.content[(section, record.id)] = record
        return record

    def get_content(self, section: str, item_id: str) -> Optional[ContentRecord]:
        return self.content.get((section, item_id))

    def update_content(
        self,
        section: str,
        item_id: str,
        *,
        fields: Optional[dict] = None,
        is_active: Optional[bool] = None,
        sort_order: Optional[int] = None,
    ) -> Optional[ContentRecord]:
        record = self.content.get((section, item_id))
        if not record:
            return None
        if fields is not None:
            record.fields = {**record.fields, **fields}
        if is_active is not None:
            record.is_active = is_active
        if sort_order is not None:
            record.sort_order = sort_order
        record.updated_at = time.time()
        return record

    def delete_content(self, section: str, item_id: str) -> bool:
        return self.content.pop((section, item_id), None) is not None

    def list_content(
        self, section: str, active_only: bool = False
    ) -> list[ContentRecord]:
        records = [r for (s, _), r in self.content.items() if s == section]
        if active_only:
            records = [r for r in records if r.is_active]
        return sorted(records, key=_content_sort_key)


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_role(row: "UserRoleRow") -> UserRoleRecord:
        return UserRoleRecord(
            id=row.id,
            user_id=row.user_id,
            role=AppRole(row.role),
            created_at=row.created_at,
        )

    @staticmethod
    def _to_category(row: "ImageCategoryRow") -> ImageCategoryRecord:
        return ImageCategoryRecord(
            id=row.id,
            name=row.name,
            folder_path=row.folder_path,
            is_active=row.is_active,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_image(row: "ImageRow") -> ImageRecord:
        return ImageRecord(
            id=row.id,
            s3_key=row.s3_key,
            original_name=row.original_name,
            category_id=row.category_id,
            file_size=row.file_size,
            is_processed=row.is_processed,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _to_submission(row: "ContactSubmissionRow") -> ContactSubmissionRecord:
        return ContactSubmissionRecord(
            id=row.id,
            first_name=row.first_name,
            last_name=row.last_name,
            email=row.email,
            message=row.message,
            project_type=row.project_type,
            is_read=row.is_read,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_content(row: "ContentRow") -> ContentRecord:
        return ContentRecord(
            id=row.id,
            section=row.section,
            fields=dict(row.fields or {}),
            is_active=row.is_active,
            sort_order=row.sort_order,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def has_role(self, user_id: str, role: AppRole) -> bool:
        with self.Session() as session:
            stmt = (
                select(UserRoleRow.id)
                .where(UserRoleRow.user_id == user_id, UserRoleRow.role == role.value)
                .limit(1)
            )
            return session.execute(stmt).first() is not None

    def list_user_roles(self, user_id: str) -> list[UserRoleRecord]:
        with self.Session() as session:
            stmt = (
                select(UserRoleRow)
                .where(UserRoleRow.user_id == user_id)
                .order_by(UserRoleRow.created_at.asc())
            )
            return [self._to_role(row) for row in session.execute(stmt).scalars()]

    def list_all_user_roles(self) -> list[UserRoleRecord]:
        with self.Session() as session:
            stmt = select(UserRoleRow).order_by(
                UserRoleRow.user_id.asc(), UserRoleRow.created_at.asc()
            )
            return [self._to_role(row) for row in session.execute(stmt).scalars()]

    def add_user_role(self, user_id: str, role: AppRole) -> UserRoleRecord:
        record = UserRoleRecord(user_id=user_id, role=role)
        with self.Session() as session:
            session.add(
                UserRoleRow(
                    id=record.id,
                    user_id=record.user_id,
                    role=record.role.value,
                    created_at=record.created_at,
                )
            )
            session.commit()
        return record

    def remove_user_role(self, user_id: str, role: AppRole) -> int:
        with self.Session() as session:
            result = session.execute(
                delete(UserRoleRow).where(
                    UserRoleRow.user_id == user_id, UserRoleRow.role == role.value
                )
            )
            session.commit()
            return result.rowcount or 0

    def create_image_category(
        self, name: str, folder_path: str, is_active: bool = True
    ) -> ImageCategoryRecord:
        record = ImageCategoryRecord(
            name=name, folder_path=folder_path, is_active=is_active
        )
        with self.Session() as session:
            session.add(
                ImageCategoryRow(
                    id=record.id,
                    name=record.name,
                    folder_path=record.folder_path,
                    is_active=record.is_active,
                    created_at=record.created_at,
                )
            )
            session.commit()
        return record

    def list_image_categories(
        self, active_only: bool = True
    ) -> list[ImageCategoryRecord]:
        with self.Session() as session:
            stmt = select(ImageCategoryRow).order_by(ImageCategoryRow.name.asc())
            if active_only:
                stmt = stmt.where(ImageCategoryRow.is_active.is_(True))
            return [self._to_category(row) for row in session.execute(stmt).scalars()]

    def get_image_by_key(self, s3_key: str) -> Optional[ImageRecord]:
        with self.Session() as session:
            stmt = select(ImageRow).where(ImageRow.s3_key == s3_key).limit(1)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_image(row) if row else None

    def create_image(self, image: ImageRecord) -> ImageRecord:
        with self.Session() as session:
            session.add(
                ImageRow(
                    id=image.id,
                    s3_key=image.s3_key,
                    original_name=image.original_name,
                    category_id=image.category_id,
                    file_size=image.file_size,
                    is_processed=image.is_processed,
                    created_at=image.created_at,
                    updated_at=image.updated_at,
                )
            )
            session.commit()
        return image

    def list_images(
        self, *, category_id: Optional[str] = None, uncategorized: bool = False
    ) -> list[ImageRecord]:
        with self.Session() as session:
            stmt = select(ImageRow).order_by(ImageRow.created_at.asc())
            if uncategorized:
                stmt = stmt.where(ImageRow.category_id.is_(None))
            elif category_id is not None:
                stmt = stmt.where(ImageRow.category_id == category_id)
            return [self._to_image(row) for row in session.execute(stmt).scalars()]

    def set_image_category(self, image_id: str, category_id: str) -> bool:
        with self.Session() as session:
            row = session.get(ImageRow, image_id)
            if not row:
                return False
            row.category_id = category_id
            row.updated_at = time.time()
            session.commit()
            return True

    def save_contact_submission(
        self, submission: ContactSubmissionRecord
    ) -> ContactSubmissionRecord:
        with self.Session() as session:
            session.add(
                ContactSubmissionRow(
                    id=submission.id,
                    first_name=submission.first_name,
                    last_name=submission.last_name,
                    email=submission.email,
                    message=submission.message,
                    project_type=submission.project_type,
                    is_read=submission.is_read,
                    created_at=submission.created_at,
                )
            )
            session.commit()
        return submission

    def list_contact_submissions(self) -> list[ContactSubmissionRecord]:
        with self.Session() as session:
            stmt = select(ContactSubmissionRow).order_by(
                ContactSubmissionRow.created_at.desc()
            )
            return [
                self._to_submission(row) for row in session.execute(stmt).scalars()
            ]

    def mark_contact_submission_read(self, submission_id: str) -> bool:
        with self.Session() as session:
            row = session.get(ContactSubmissionRow, submission_id)
            if not row:
                return False
            row.is_read = True
            session.commit()
            return True

    def create_content(
        self,
        section: str,
        fields: dict,
        *,
        is_active: bool = True,
        sort_order: int = 0,
    ) -> ContentRecord:
        record = ContentRecord(
            section=section,
            fields=dict(fields),
            is_active=is_active,
            sort_order=sort_order,
        )
        with self.Session() as session:
            session.add(
                ContentRow(
                    id=record.id,
                    section=record.section,
                    fields=record.fields,
                    is_active=record.is_active,
                    sort_order=record.sort_order,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
            session.commit()
        return record

    def get_content(self, section: str, item_id: str) -> Optional[ContentRecord]:
        with self.Session() as session:
            row = session.get(ContentRow, item_id)
            if not row or row.section != section:
                return None
            return self._to_content(row)

    def update_content(
        self,
        section: str,
        item_id: str,
        *,
        fields: Optional[dict] = None,
        is_active: Optional[bool] = None,
        sort_order: Optional[int] = None,
    ) -> Optional[ContentRecord]:
        with self.Session() as session:
            row = session.get(ContentRow, item_id)
            if not row or row.section != section:
                return None
            if fields is not None:
                # Reassign so SQLAlchemy notices the JSON change.
                row.fields = {**(row.fields or {}), **fields}
            if is_active is not None:
                row.is_active = is_active
            if sort_order is not None:
                row.sort_order = sort_order
            row.updated_at = time.time()
            session.commit()
            session.refresh(row)
            return self._to_content(row)

    def delete_content(self, section: str, item_id: str) -> bool:
        with self.Session() as session:
            row = session.get(ContentRow, item_id)
            if not row or row.section != section:
                return False
            session.delete(row)
            session.commit()
            return True

    def list_content(
        self, section: str, active_only: bool = False
    ) -> list[ContentRecord]:
        with self.Session() as session:
            stmt = (
                select(ContentRow)
                .where(ContentRow.section == section)
                .order_by(ContentRow.sort_order.asc(), ContentRow.created_at.asc())
            )
            if active_only:
                stmt = stmt.where(ContentRow.is_active.is_(True))
            return [self._to_content(row) for row in session.execute(stmt).scalars()]


Base = declarative_base()


class UserRoleRow(Base):
    __tablename__ = "user_roles"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    role = Column(String, nullable=False)
    created_at = Column(Float, nullable=False)


class ImageCategoryRow(Base):
    __tablename__ = "image_categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    folder_path = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(Float, nullable=False)


class ImageRow(Base):
    __tablename__ = "images"

    id = Column(String, primary_key=True)
    s3_key = Column(String, nullable=False, unique=True, index=True)
    original_name = Column(String, nullable=False)
    category_id = Column(String, nullable=True, index=True)
    file_size = Column(Integer, nullable=True)
    is_processed = Column(Boolean, nullable=False, default=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class ContactSubmissionRow(Base):
    __tablename__ = "contact_submissions"

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    message = Column(String, nullable=True)
    project_type = Column(String, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(Float, nullable=False)


class ContentRow(Base):
    __tablename__ = "content_items"

    id = Column(String, primary_key=True)
    section = Column(String, nullable=False, index=True)
    fields = Column(JSON, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
