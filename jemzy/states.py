"""FSM States for bot flows."""
from aiogram.fsm.state import State, StatesGroup


class NearbySearch(StatesGroup):
    """Location sharing flow."""
    waiting_location = State()
