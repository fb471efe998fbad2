"""File repository for database operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from shareserver.database import get_db_connection

logger = get_logger(__name__)


@dataclass
class SharedFile:
    file_id: str
    name: str
    size: int
    share_id: str
    created_at: datetime


def _row_to_file(row) -> SharedFile:
    return SharedFile(
        file_id=row["file_id"],
        name=row["name"],
        size=int(row["size"]),
        share_id=row["share_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class FileRepository:
    @staticmethod
    def create_file(
        file_id: str,
        name: str,
        size: int,
        share_id: str,
        created_at: Optional[datetime] = None,
    ) -> SharedFile:
        if created_at is None:
            created_at = datetime.utcnow()

        with get_db_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO files (file_id, name, size, share_id, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (file_id, name, str(size), share_id, created_at.isoformat())
                )
                conn.commit()
                logger.debug(f"File record created: {file_id} [share_id={share_id}, size={size}]")
            except Exception as e:
                logger.error(f"Failed to create file record {file_id}: {e}", exc_info=True)
                raise

        return SharedFile(
            file_id=file_id,
            name=name,
            size=size,
            share_id=share_id,
            created_at=created_at,
        )

    @staticmethod
    def get_by_id(file_id: str) -> Optional[SharedFile]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT file_id, name, size, share_id, created_at FROM files WHERE file_id = ?",
                (file_id,)
            )
            row = cursor.fetchone()

            if row is None:
                return None

            return _row_to_file(row)

    @staticmethod
    def get_by_share(share_id: str, conn=None) -> List[SharedFile]:
        if conn is not None:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT file_id, name, size, share_id, created_at FROM files WHERE share_id = ? ORDER BY created_at",
                (share_id,)
            )
            return [_row_to_file(row) for row in cursor.fetchall()]

        with get_db_connection() as conn:
            return FileRepository.get_by_share(share_id, conn=conn)

    @staticmethod
    def delete_file(file_id: str) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM files WHERE file_id = ?", (file_id,))
            conn.commit()
            return cursor.rowcount > 0
