from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func

from loyaltyapi.models.user import User as UserModel, UserRole
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserModel, UserSchema]):
    """사용자 리포지토리 - 잔액(points) 변경은 PointsRepository를 통해서만"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    def get_by_username(self, username: str) -> Optional[UserSchema]:
        return self.get_by_field("username", username)

    def get_by_email(self, email: str) -> Optional[UserSchema]:
        """이메일로 사용자 조회"""
        return self.get_by_field("email", email)

    def get_by_google_id(self, google_id: str) -> Optional[UserSchema]:
        return self.get_by_field("google_id", google_id)

    def get_id_by_channel(self, channel_id: str) -> Optional[int]:
        """유튜브 채널 ID로 연결된 사용자 ID 조회"""
        self._ensure_clean_session()
        return (
            self.db.query(self.model_class.id)
            .filter(self.model_class.youtube_channel_id == channel_id)
            .order_by(self.model_class.id)
            .limit(1)
            .scalar()
        )

    def get_password_hash(self, email: str) -> Optional[tuple]:
        """(user_id, password_hash) 반환 - 로컬 로그인 전용"""
        self._ensure_clean_session()
        row = (
            self.db.query(self.model_class.id, self.model_class.password_hash)
            .filter(func.lower(self.model_class.email) == email.lower())
            .first()
        )
        return (row[0], row[1]) if row else None

    def create_user(
        self,
        username: str,
        email: Optional[str],
        password_hash: Optional[str] = None,
        google_id: Optional[str] = None,
        youtube_channel_id: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> UserSchema:
        return self.create(
            username=username,
            email=email,
            password_hash=password_hash,
            google_id=google_id,
            youtube_channel_id=youtube_channel_id,
            role=role.value,
            points=0,
            is_banned=False,
            first_chat_claimed=False,
        )

    def link_google_identity(
        self, user_id: int, google_id: str, youtube_channel_id: Optional[str]
    ) -> Optional[UserSchema]:
        values = {"google_id": google_id}
        if youtube_channel_id:
            values["youtube_channel_id"] = youtube_channel_id
        return self.update(user_id, **values)

    def set_banned(self, user_id: int, banned: bool) -> Optional[UserSchema]:
        return self.update(user_id, is_banned=banned)

    def list_users(self, limit: int = 100, offset: int = 0) -> List[UserSchema]:
        self._ensure_clean_session()
        rows = (
            self.db.query(self.model_class)
            .order_by(self.model_class.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [self._to_schema(row) for row in rows]
