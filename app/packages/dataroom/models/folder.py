"""数据室文件夹模型。

``path`` 是由各级 slug 拼接而成的物化路径（如 ``/finance/q1``），同一数据室内唯一；
子树查询依赖该前缀而非递归遍历 ``parent_id``。
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.dataroom.models.base import Base, TimestampMixin


class DataroomFolder(TimestampMixin, Base):
    __tablename__ = "dataroom_folders"
    __table_args__ = (
        UniqueConstraint("dataroom_id", "path", name="uq_dataroom_folders_dataroom_path"),
        Index("ix_dataroom_folders_dataroom_parent", "dataroom_id", "parent_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    dataroom_id: Mapped[int] = mapped_column(ForeignKey("datarooms.id", ondelete="CASCADE"), index=True)
    parent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("dataroom_folders.id"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255))
    path: Mapped[str] = mapped_column(String(1024))
    order_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # 非空表示已移入回收站
    removed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_live(self) -> bool:
        return self.removed_at is None
