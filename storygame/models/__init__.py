"""
모델 패키지
"""

from .user import User
from .story_node import StoryNode, Choice, Dialogue
from .character import Character, PlayerCharacter
from .game_save import GameSave

__all__ = [
    "User",
    "StoryNode",
    "Choice",
    "Dialogue",
    "Character",
    "PlayerCharacter",
    "GameSave",
]
