"""SQLAlchemy models for exam material chunks."""

from typing import List

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.models import TimestampMixin
from ...infrastructure.database.session import Base


class MaterialChunk(Base, TimestampMixin):
    """A chunk of an exam's reference material with its vector embedding.

    Rows are written once during ingestion and only removed when their file
    or exam is deleted. ``dimension`` is stored explicitly so the exam's
    established dimension can be checked without loading embeddings.
    """

    __tablename__ = "exam_material_chunks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    exam_id: Mapped[str] = mapped_column(String(128), index=True)
    file_name: Mapped[str] = mapped_column(String(512))
    file_url: Mapped[str] = mapped_column(Text, index=True)
    chunk_index: Mapped[int] = mapped_column(Integer)
    start_char: Mapped[int] = mapped_column(Integer)
    end_char: Mapped[int] = mapped_column(Integer)
    content: Mapped[str] = mapped_column(Text)
    embedding: Mapped[List[float]] = mapped_column(JSON)
    dimension: Mapped[int] = mapped_column(Integer)
