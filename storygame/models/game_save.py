"""
게임 세이브 모델
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from storygame.core.database import Base, JSON


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameSave(Base):
    """게임 세이브 - 스토리 그래프 안에서 플레이어의 현재 위치"""
    __tablename__ = "game_saves"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    player_character_id = Column(
        Integer,
        ForeignKey("player_characters.character_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    save_name = Column(String(100), nullable=False)

    # 현재 위치는 항상 존재하는 노드를 가리킨다 (노드 삭제 시 cascade 없음)
    current_story_node_id = Column(Integer, ForeignKey("story_nodes.id"), nullable=False, index=True)

    # 이동 기록
    visited_node_ids = Column(JSON, nullable=False, default=list)  # 오래된 순서의 노드 id 목록
    last_choice_id = Column(Integer, ForeignKey("choices.id", ondelete="SET NULL"), nullable=True)
    current_dialogue_index = Column(Integer, nullable=False, default=0)

    # 낙관적 동시성 제어용 버전
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    # 최근 세이브 판단 기준 (마이크로초 단위)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # 관계 설정
    user = relationship("User", back_populates="game_saves")

    def __repr__(self):
        return f"<GameSave(id={self.id}, user_id={self.user_id}, node={self.current_story_node_id})>"
