"""Pure domain core: record trees, cascade algorithms and ports."""
