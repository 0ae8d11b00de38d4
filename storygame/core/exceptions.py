"""
도메인 예외 - 서비스 계층에서 발생시키고 API 계층에서 HTTP 응답으로 변환한다
"""


class StoryGameError(Exception):
    """스토리 게임 기본 예외"""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(StoryGameError):
    """엔티티 id가 존재하지 않음"""

    def __init__(self, entity: str, entity_id=None):
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} with id {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class InvalidChoiceError(StoryGameError):
    """선택지가 없거나 현재 노드에 속하지 않음"""

    def __init__(self, choice_id, node_id=None):
        if node_id is None:
            message = f"Choice {choice_id} does not exist"
        else:
            message = f"Choice {choice_id} does not belong to node {node_id}"
        super().__init__(message)
        self.choice_id = choice_id
        self.node_id = node_id


class InvalidNodeError(StoryGameError):
    """필요한 스토리 노드가 존재하지 않음"""

    def __init__(self, node_id):
        super().__init__(f"StoryNode {node_id} does not exist")
        self.node_id = node_id


class ConflictError(StoryGameError):
    """커밋 시점에 전제 조건이 더 이상 유효하지 않음 (재시도 가능)"""
    pass


class ValidationFailureError(StoryGameError):
    """도메인 계층에 도달하기 전 입력값 검증 실패"""
    pass
