"""文档模型：``Document`` 是团队级可复用文档，``DataroomDocument`` 是它在某个数据室中的放置。"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.packages.dataroom.models.base import Base, TimestampMixin


class Document(TimestampMixin, Base):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class DataroomDocument(TimestampMixin, Base):
    __tablename__ = "dataroom_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    dataroom_id: Mapped[int] = mapped_column(ForeignKey("datarooms.id", ondelete="CASCADE"), index=True)
    document_id: Mapped[int] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"), index=True)
    folder_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("dataroom_folders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    order_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    removed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    document: Mapped[Document] = relationship("Document", lazy="joined")

    @property
    def name(self) -> str:
        return self.document.name if self.document is not None else ""

    @property
    def is_live(self) -> bool:
        return self.removed_at is None
