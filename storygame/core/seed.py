"""
데모 스토리 초기 데이터 삽입 (비어 있는 DB 에서만 실행)
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import logging

from storygame.models import User, StoryNode, Choice, Dialogue, Character

logger = logging.getLogger(__name__)

# 로그인 불가능한 비밀번호 표시 (인증은 이 서비스 범위 밖)
UNUSABLE_PASSWORD = "!"

DEMO_NODES = [
    {"title": "Start", "description": "우주선의 비상 경보가 울리며 눈을 떴다."},
    {"title": "Hallway", "description": "붉은 경고등이 깜빡이는 복도."},
    {"title": "Bridge", "description": "텅 빈 함교. 조종석 화면만 빛나고 있다."},
    {"title": "Escape Pod", "description": "탈출 포드가 우주선을 떠난다. 끝."},
]

# (출발 노드 index, 도착 노드 index, 선택지 문구, 체력 변화)
DEMO_CHOICES = [
    (0, 1, "Open the door", None),
    (1, 2, "Head to the bridge", None),
    (1, 3, "Run to the escape pod", -10),
    (2, 1, "Go back to the hallway", None),
    (2, 3, "Abandon ship", None),
]

DEMO_CHARACTERS = [
    {"name": "ARIA", "description": "우주선의 안내 AI"},
]

# (노드 index, 캐릭터 index 또는 None, 순서, 대사)
DEMO_DIALOGUES = [
    (0, 0, 0, "경고. 선체 손상이 감지되었습니다."),
    (0, None, 1, "머리가 울린다. 일어나야 한다."),
    (1, 0, 0, "함교 또는 탈출 포드로 이동하십시오."),
    (2, 0, 0, "자동 항법이 응답하지 않습니다."),
]


async def seed_demo_story(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """스토리 노드가 하나도 없을 때만 데모 그래프 삽입. 삽입했으면 True"""
    async with session_factory() as session:
        async with session.begin():
            count = (await session.execute(select(func.count(StoryNode.id)))).scalar() or 0
            if count:
                logger.info("📚 스토리 노드가 이미 있어 데모 데이터 삽입 생략")
                return False

            nodes = [StoryNode(**data) for data in DEMO_NODES]
            characters = [Character(**data) for data in DEMO_CHARACTERS]
            session.add_all(nodes + characters)
            await session.flush()

            for source, target, text, health_effect in DEMO_CHOICES:
                session.add(Choice(
                    story_node_id=nodes[source].id,
                    next_story_node_id=nodes[target].id,
                    text=text,
                    health_effect=health_effect,
                ))
            for node_index, character_index, order, text in DEMO_DIALOGUES:
                session.add(Dialogue(
                    story_node_id=nodes[node_index].id,
                    character_id=characters[character_index].id if character_index is not None else None,
                    order=order,
                    text=text,
                ))

            existing_user = (await session.execute(select(User).where(User.username == "demo"))).scalar_one_or_none()
            if existing_user is None:
                session.add(User(username="demo", hashed_password=UNUSABLE_PASSWORD, role="player"))

    logger.info(f"📚 데모 스토리 삽입 완료 (노드 {len(DEMO_NODES)}개)")
    return True
