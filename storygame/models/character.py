"""
캐릭터 모델 - 플레이어 캐릭터는 상속 대신 같은 id를 키로 하는 확장 레코드로 표현
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from storygame.core.database import Base


class Character(Base):
    """캐릭터 모델"""
    __tablename__ = "characters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(String(500), nullable=True)

    def __repr__(self):
        return f"<Character(id={self.id}, name={self.name})>"


class PlayerCharacter(Base):
    """플레이어 확장 - 존재하면 해당 캐릭터는 플레이어 캐릭터"""
    __tablename__ = "player_characters"

    character_id = Column(Integer, ForeignKey("characters.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    health = Column(Integer, nullable=False, default=100)

    # 체력 변경 충돌 감지용 버전
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    user = relationship("User", back_populates="player_characters")

    def __repr__(self):
        return f"<PlayerCharacter(character_id={self.character_id}, user_id={self.user_id}, health={self.health})>"
