"""Share repository for database operations."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from shareserver.database import get_db_connection, get_row_value
from shareserver.repositories.file_repository import FileRepository, SharedFile
from shareserver.repositories.reverse_share_repository import ReverseShare, ReverseShareRepository

logger = get_logger(__name__)


@dataclass
class Share:
    share_id: str
    upload_locked: bool
    created_at: datetime
    max_share_size: Optional[int] = None
    reverse_share: Optional[ReverseShare] = None
    files: List[SharedFile] = field(default_factory=list)


class ShareRepository:
    @staticmethod
    def create_share(
        share_id: str,
        reverse_share_id: Optional[str] = None,
        max_share_size: Optional[int] = None,
    ) -> Share:
        created_at = datetime.utcnow()

        with get_db_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO shares (share_id, upload_locked, max_share_size, reverse_share_id, created_at)
                    VALUES (?, 0, ?, ?, ?)
                    """,
                    (
                        share_id,
                        str(max_share_size) if max_share_size is not None else None,
                        reverse_share_id,
                        created_at.isoformat(),
                    )
                )
                conn.commit()
            except Exception as e:
                logger.error(f"Failed to create share {share_id}: {e}", exc_info=True)
                raise

            reverse_share = None
            if reverse_share_id is not None:
                reverse_share = ReverseShareRepository.get_by_id(reverse_share_id, conn=conn)

        logger.info(f"Share created: {share_id} [reverse_share_id={reverse_share_id}]")
        return Share(
            share_id=share_id,
            upload_locked=False,
            created_at=created_at,
            max_share_size=max_share_size,
            reverse_share=reverse_share,
        )

    @staticmethod
    def get_by_id(share_id: str) -> Optional[Share]:
        """
        Load a share together with its finalized files and reverse share.
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT share_id, upload_locked, max_share_size, reverse_share_id, created_at
                FROM shares WHERE share_id = ?
                """,
                (share_id,)
            )
            row = cursor.fetchone()

            if row is None:
                return None

            max_share_size = get_row_value(row, "max_share_size")
            reverse_share_id = get_row_value(row, "reverse_share_id")

            return Share(
                share_id=row["share_id"],
                upload_locked=bool(row["upload_locked"]),
                created_at=datetime.fromisoformat(row["created_at"]),
                max_share_size=int(max_share_size) if max_share_size is not None else None,
                reverse_share=(
                    ReverseShareRepository.get_by_id(reverse_share_id, conn=conn)
                    if reverse_share_id else None
                ),
                files=FileRepository.get_by_share(share_id, conn=conn),
            )

    @staticmethod
    def exists(share_id: str) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM shares WHERE share_id = ?", (share_id,))
            return cursor.fetchone() is not None

    @staticmethod
    def set_upload_locked(share_id: str, upload_locked: bool) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE shares SET upload_locked = ? WHERE share_id = ?",
                (1 if upload_locked else 0, share_id)
            )
            conn.commit()
            return cursor.rowcount > 0

    @staticmethod
    def delete_share(share_id: str) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM shares WHERE share_id = ?", (share_id,))
            conn.commit()
            return cursor.rowcount > 0
