from pathlib import Path

import pytest

ORDER_A = """import { validateOrder } from './b';

export function processOrder(order) {
  return validateOrder(order);
}
"""

ORDER_B = """export function validateOrder(order) {
  return order.total > 0;
}
"""


class FakeClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_project(root: Path, files: dict[str, str]) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def order_project(tmp_path: Path) -> Path:
    return write_project(tmp_path, {"a.ts": ORDER_A, "b.ts": ORDER_B})
