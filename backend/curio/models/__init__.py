# Importing the models registers every table on Base.metadata (Alembic, tests)
from curio.models.user import AuthSession, User
from curio.models.board import Board, BoardInvite, BoardMember
from curio.models.card import Card

__all__ = ["AuthSession", "User", "Board", "BoardInvite", "BoardMember", "Card"]
