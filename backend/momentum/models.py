import secrets
import string
from dataclasses import dataclass
from typing import Callable, Dict

DEFAULT_GOAL = 10

# 64-slot URL-safe alphabet: digits, lowercase, uppercase, with 'Z' standing
# in for the two slots ('-' and '_') we don't want in a shareable code.
ID_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase + 'ZZ'


def random_id(length: int) -> str:
    """Random identifier drawn from ID_ALPHABET, rendered upper-case."""
    raw = ''.join(ID_ALPHABET[b & 63] for b in secrets.token_bytes(length))
    # Upper-casing makes codes easy to read out to a friend
    return raw.upper()


def generate_session_id(exists: Callable[[str], bool], length: int = 4,
                        max_attempts: int = 100, fallback_length: int = 5) -> str:
    """Generate a short session identifier not yet known to `exists`.

    Collisions retry up to `max_attempts` times. After that a single longer
    identifier is returned without a collision check; with a 4 character
    code this only happens once the store is close to saturated.
    """
    for _ in range(max_attempts + 1):
        candidate = random_id(length)
        if not exists(candidate):
            return candidate
    return random_id(fallback_length)


@dataclass
class Session:
    player_momentum: int = 0
    opponent_momentum: int = 0
    player_goal: int = DEFAULT_GOAL
    opponent_goal: int = DEFAULT_GOAL
    # Not part of the public state payload
    guest_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'playerGoal': self.player_goal,
            'playerMomentum': self.player_momentum,
            'opponentGoal': self.opponent_goal,
            'opponentMomentum': self.opponent_momentum,
        }
