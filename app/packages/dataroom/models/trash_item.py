"""回收站索引模型。

每个进入回收站的文件夹或文档恰好对应一行 ``TrashItem``；恢复或永久清除时删除该行。
``parent_id`` 指向所在文件夹对应的 ``TrashItem.id``，据此可以在回收站中重建目录树。
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.dataroom.core.enums import ItemTypeEnum
from app.packages.dataroom.models.base import Base


class TrashItem(Base):
    __tablename__ = "trash_items"
    __table_args__ = (
        Index("ix_trash_items_dataroom_parent", "dataroom_id", "parent_id"),
        Index("ix_trash_items_dataroom_deleted_at", "dataroom_id", "deleted_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    item_id: Mapped[int] = mapped_column(Integer)
    item_type: Mapped[str] = mapped_column(String(32))
    dataroom_id: Mapped[int] = mapped_column(ForeignKey("datarooms.id", ondelete="CASCADE"), index=True)
    dataroom_folder_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("dataroom_folders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    dataroom_document_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("dataroom_documents.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("trash_items.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255))
    trash_path: Mapped[str] = mapped_column(String(1024))
    full_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    deleted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    purge_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    deleted_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    @property
    def is_folder(self) -> bool:
        return self.item_type == ItemTypeEnum.DATAROOM_FOLDER.value
