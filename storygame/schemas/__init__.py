"""
Pydantic 스키마 패키지
"""

from .story import (
    StoryNodeDto,
    StoryNodeDetailDto,
    ChoiceDto,
    DialogueDto,
    CharacterDto,
    PlayerCharacterDto,
)
from .game import (
    StartGameRequest,
    MakeChoiceRequest,
    SaveProgressRequest,
    MoveToNextNodeRequest,
    MoveToPreviousNodeRequest,
    HealthChangeRequest,
    GameSaveDto,
    GameStateDto,
    VisitedNodesResponse,
    DialogueCompleteResponse,
)
