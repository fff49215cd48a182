from abc import ABC
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
from sqlalchemy.orm import Session
from pydantic import BaseModel

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """
    모든 리포지토리의 베이스 클래스 - Pydantic 응답 보장

    쓰기 메서드는 기본적으로 커밋하지 않고 호출 측 트랜잭션(정산 단위)에 참여합니다.
    """

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        """SQLAlchemy 모델을 Pydantic 스키마로 변환"""
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _ensure_clean_session(self) -> None:
        """실패한 트랜잭션이 남아 있으면 롤백 (진행 중인 트랜잭션은 유지해 잠금을 보존)"""
        if not self.db.is_active:
            self.db.rollback()

    def _filtered(self, filters: Optional[Dict[str, Any]]):
        query = self.db.query(self.model_class)
        for key, value in (filters or {}).items():
            if hasattr(self.model_class, key):
                query = query.filter(getattr(self.model_class, key) == value)
        return query

    def get_model(self, id: Any) -> Optional[T]:
        self._ensure_clean_session()
        return self.db.get(self.model_class, id)

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        """ID로 조회 - Pydantic 스키마 반환"""
        return self._to_schema(self.get_model(id))

    def get_by_field(self, field_name: str, value: Any) -> Optional[SchemaType]:
        """특정 필드로 조회 - Pydantic 스키마 반환"""
        self._ensure_clean_session()
        model_instance = (
            self.db.query(self.model_class)
            .filter(getattr(self.model_class, field_name) == value)
            .first()
        )
        return self._to_schema(model_instance)

    def find_all(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[SchemaType]:
        """조건에 맞는 모든 레코드 조회 - Pydantic 스키마 리스트 반환"""
        self._ensure_clean_session()
        query = self._filtered(filters)

        if order_by and hasattr(self.model_class, order_by):
            query = query.order_by(getattr(self.model_class, order_by))

        if offset:
            query = query.offset(offset)

        if limit:
            query = query.limit(limit)

        return [self._to_schema(instance) for instance in query.all()]

    def create(self, commit: bool = False, **kwargs) -> SchemaType:
        """새 레코드 생성 - Pydantic 스키마 반환"""
        self._ensure_clean_session()
        instance = self.model_class(**kwargs)
        self.db.add(instance)
        self.db.flush()
        self.db.refresh(instance)
        if commit:
            self.db.commit()
        return self._to_schema(instance)

    def update(
        self, instance_id: Any, commit: bool = False, **kwargs
    ) -> Optional[SchemaType]:
        """레코드 업데이트 - Pydantic 스키마 반환"""
        instance = self.get_model(instance_id)
        if not instance:
            return None

        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        self.db.flush()
        self.db.refresh(instance)
        if commit:
            self.db.commit()
        return self._to_schema(instance)

    def delete(self, instance_id: Any, commit: bool = False) -> bool:
        """레코드 삭제"""
        instance = self.get_model(instance_id)
        if not instance:
            return False

        self.db.delete(instance)
        self.db.flush()
        if commit:
            self.db.commit()
        return True

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """레코드 수 조회"""
        self._ensure_clean_session()
        return self._filtered(filters).count()

    def exists(self, filters: Dict[str, Any]) -> bool:
        """레코드 존재 여부 확인"""
        self._ensure_clean_session()
        return self._filtered(filters).first() is not None
