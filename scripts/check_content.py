import sys
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path: sys.path.insert(0, str(ROOT))

from app.core.content import load_game_data
from app.core.engines.registry import build_registry
from app.core.errors import ContentError
from app.core.settings import get_settings, game_data_path

def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    path = Path(argv[0]) if argv else game_data_path()
    s = get_settings()
    try:
        entries = load_game_data(path)
        registry = build_registry(entries, s.total_sublevels, s.remainder_policy)
    except (ContentError, ValueError) as e:
        print(f"Content check FAILED: {e}")
        return 1

    print(f"{path}: {len(entries)} topics, {s.total_sublevels} sublevels ({s.remainder_policy})")
    for r, e in zip(registry.ranges, entries):
        sample = registry.generate(r.start)
        print(f"  [{r.start:>4}-{r.end:>4}] {r.name:<24} {e.type:<22} {e.resolved_policy().value:<18} {sample.prompt}")
    print("Content check OK")
    return 0

if __name__ == "__main__":
    sys.exit(main())
