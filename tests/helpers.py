from application.services import build_casino_service
from application.settings import CasinoSettings
from infrastructure.db.account_repository_memory import InMemoryAccountRepository


class SequenceRandom:
    """Stand-in for `random.Random` that replays fixed draws."""

    def __init__(self, values):
        self._values = list(values)

    def random(self):
        return self._values.pop(0)

    def extend(self, values):
        self._values.extend(values)


VALID_ADDRESS = "bc1qxy2kgdygjrsqtzq2n0yrf2493p83kkfjhx0wlh"


def make_service(rng=None, repo=None, **settings):
    settings.setdefault("resolve_delay_seconds", 0)
    repo = repo if repo is not None else InMemoryAccountRepository()
    return build_casino_service(repo, CasinoSettings(**settings), rng=rng)
