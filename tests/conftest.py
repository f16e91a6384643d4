"""Shared pytest fixtures for phpintel tests."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from dotenv import load_dotenv
from hypothesis import settings

from phpintel.adapters.php.oracle import TreeSitterOracle
from phpintel.core.config import PhpIntelConfig, reload_config

# Load environment variables from .env file
load_dotenv()

# Configure hypothesis for property-based testing
settings.register_profile("ci", max_examples=100, deadline=None)
settings.register_profile("dev", max_examples=20, deadline=None)
settings.load_profile("dev")

MISSING_COMPOSER = "phpintel-test-no-such-composer"

COMPOSER_JSON = {
    "name": "acme/geometry",
    "autoload": {"psr-4": {"App\\": "src/"}},
    "autoload-dev": {"psr-4": {"App\\Tests\\": ["tests/"], "App\\": "lib/"}},
}

PROJECT_FILES: dict[str, str] = {
    "src/Contracts/Named.php": """<?php

namespace App\\Contracts;

interface Named
{
    public function name(): string;
}
""",
    "src/Contracts/Shape.php": """<?php

namespace App\\Contracts;

interface Shape extends Named
{
    const UNIT = 'cm';

    /**
     * Area of the shape.
     *
     * @return float
     */
    public function area();
}
""",
    "src/Geometry/Polygon.php": """<?php

namespace App\\Geometry;

use App\\Contracts\\Shape;
use App\\Support\\Point as P;

/**
 * Base polygon.
 *
 * @property int $corners
 * @property-read string $label
 * @property P $anchor
 */
abstract class Polygon implements Shape
{
    const SIDES = 0;
    const VERTICES = ['a', 'b'];

    /** @var P[] */
    protected $points = [];

    public static $count = 0;

    private $secret;

    /**
     * {@inheritdoc}
     */
    public function area()
    {
        return 0.0;
    }

    public function name(): string
    {
        return static::class;
    }

    /**
     * @return P
     */
    public function first()
    {
        return $this->points[0];
    }

    /**
     * @return static
     */
    public function copy()
    {
        return clone $this;
    }

    public function origin(): ?P
    {
        return null;
    }

    public function same(): self
    {
        return $this;
    }

    public static function create(int $sides, string ...$labels): static
    {
    }

    protected function guard($value)
    {
    }

    final public function id(): int
    {
        return 1;
    }
}
""",
    "src/Geometry/Square.php": """<?php

namespace App\\Geometry;

use App\\Support\\Point;

final class Square extends Polygon
{
    use \\App\\Support\\HasTags;

    const SIDES = 4;

    public function __construct(private float $side, public ?Point $corner = null)
    {
    }

    /**
     * @inheritDoc
     */
    public function area()
    {
        return $this->side ** 2;
    }
}
""",
    "src/Support/HasTags.php": """<?php

namespace App\\Support;

trait HasTags
{
    protected $tags = [];

    public function tags(): array
    {
        return $this->tags;
    }
}
""",
    "src/Support/Point.php": """<?php

namespace App\\Support;

class Point
{
    /** @var float */
    public $x;

    public float $y = 0.0;

    public static ?Point $origin = null;
}
""",
    "src/functions.php": """<?php

namespace App;

const VERSION = '1.0';

define('APP_DEBUG', true);

/**
 * Format a point.
 */
function format_point(Support\\Point $point, string $sep = ','): string
{
    return '';
}
""",
}

HIERARCHY_FILES: dict[str, str] = {
    "src/I.php": "<?php\n\ninterface I\n{\n}\n",
    "src/A.php": "<?php\n\nclass A implements I\n{\n}\n",
    "src/B.php": "<?php\n\nclass B extends A\n{\n}\n",
}


def write_project(root: Path, files: dict[str, str], composer: dict | None = None) -> Path:
    """Write PHP sources (and optionally composer.json) below ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    if composer is not None:
        (root / "composer.json").write_text(json.dumps(composer), encoding="utf-8")
    return root


def line_of(path: Path, needle: str) -> int:
    """1-based number of the first line of ``path`` containing ``needle``."""
    for number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if needle in line:
            return number
    raise AssertionError(f"{needle!r} not found in {path}")


@pytest.fixture
def php_project(tmp_path: Path) -> Path:
    """A small composer project: interfaces, an abstract class, a trait and functions."""
    return write_project(tmp_path / "geometry", PROJECT_FILES, COMPOSER_JSON)


@pytest.fixture
def hierarchy_project(tmp_path: Path) -> Path:
    """``A implements I`` and ``B extends A`` in the global namespace."""
    return write_project(tmp_path / "hierarchy", HIERARCHY_FILES)


@pytest.fixture
def test_config() -> PhpIntelConfig:
    """Settings that never shell out to composer or php."""
    return PhpIntelConfig(
        _env_file=None,
        composer_command=MISSING_COMPOSER,
        load_builtins=False,
    )


@pytest.fixture
def loaded_oracle(php_project: Path) -> TreeSitterOracle:
    """Oracle with every file of ``php_project`` parsed."""
    oracle = TreeSitterOracle()
    oracle.load_directory(php_project)
    return oracle


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Global configuration pointing at test-safe external tools."""
    monkeypatch.setenv("PHPINTEL_COMPOSER_COMMAND", MISSING_COMPOSER)
    monkeypatch.setenv("PHPINTEL_LOAD_BUILTINS", "false")
    monkeypatch.delenv("PHPINTEL_MATCH_TYPE", raising=False)
    reload_config()
    yield
    monkeypatch.undo()
    reload_config()
