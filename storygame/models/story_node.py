"""
스토리 그래프 모델 - 노드, 선택지, 대사
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from storygame.core.database import Base


class StoryNode(Base):
    """스토리 노드 - 스토리 그래프의 정점"""
    __tablename__ = "story_nodes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    background_url = Column(String(500), nullable=True)
    background_music_url = Column(String(500), nullable=True)
    ambient_sound_url = Column(String(500), nullable=True)  # 알람, 바람, 비 등 효과음

    # 노드가 소유한 선택지/대사는 노드와 함께 삭제된다
    choices = relationship(
        "Choice",
        back_populates="story_node",
        foreign_keys="Choice.story_node_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    dialogues = relationship(
        "Dialogue",
        back_populates="story_node",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<StoryNode(id={self.id}, title={self.title})>"


class Choice(Base):
    """선택지 - 한 노드에서 다른 노드로 향하는 방향 간선"""
    __tablename__ = "choices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    story_node_id = Column(Integer, ForeignKey("story_nodes.id", ondelete="CASCADE"), nullable=False, index=True)
    # 대상 노드는 cascade 없음: 선택지가 가리키는 노드는 삭제할 수 없다
    next_story_node_id = Column(Integer, ForeignKey("story_nodes.id"), nullable=False, index=True)
    text = Column(String(500), nullable=False)
    health_effect = Column(Integer, nullable=True)  # 양수는 회복, 음수는 피해
    audio_url = Column(String(500), nullable=True)

    story_node = relationship("StoryNode", back_populates="choices", foreign_keys=[story_node_id])
    next_story_node = relationship("StoryNode", foreign_keys=[next_story_node_id])

    def __repr__(self):
        return f"<Choice(id={self.id}, {self.story_node_id}->{self.next_story_node_id})>"


class Dialogue(Base):
    """대사 - 노드에 붙은 서술 한 줄, 캐릭터는 약한 참조"""
    __tablename__ = "dialogues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    story_node_id = Column(Integer, ForeignKey("story_nodes.id", ondelete="CASCADE"), nullable=False, index=True)
    character_id = Column(Integer, ForeignKey("characters.id", ondelete="SET NULL"), nullable=True, index=True)
    text = Column(Text, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    story_node = relationship("StoryNode", back_populates="dialogues")

    def __repr__(self):
        return f"<Dialogue(id={self.id}, story_node_id={self.story_node_id}, order={self.order})>"
