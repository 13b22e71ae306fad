from .domain import WizardSnapshot


class InMemoryState:
    """Process-local snapshot store, used by tests and single-process runs."""

    def __init__(self, snapshot: WizardSnapshot | None = None):
        self._raw = snapshot.model_dump_json() if snapshot else None
        self.writes = 0

    async def get_state(self) -> WizardSnapshot:
        if self._raw is None:
            return WizardSnapshot()
        return WizardSnapshot.model_validate_json(self._raw)

    async def set_state(self, state: WizardSnapshot) -> bool:
        # Stored serialized so callers never share a live object with the store
        self._raw = state.model_dump_json()
        self.writes += 1
        return True

    async def clear(self) -> bool:
        existed = self._raw is not None
        self._raw = None
        return existed
