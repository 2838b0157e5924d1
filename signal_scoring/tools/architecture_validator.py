# signal_scoring/tools/architecture_validator.py
import ast
from pathlib import Path

FORBIDDEN_IN_DOMAIN = ["ccxt", "pandas", "requests", "yaml", "dotenv", "telegram", "sqlite"]
DOMAIN_DIR = Path(__file__).resolve().parents[1] / "domain"


def _collect_imports(file_path: Path):
    node = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
    imports = []
    for n in ast.walk(node):
        if isinstance(n, ast.Import):
            imports.extend(alias.name for alias in n.names)
        elif isinstance(n, ast.ImportFrom) and n.level == 0:
            imports.append(n.module or "")
    return imports


def validate_domain(domain_dir: Path = DOMAIN_DIR):
    errors = []
    for py in sorted(Path(domain_dir).rglob("*.py")):
        for imp in _collect_imports(py):
            root = imp.split(".")[0]
            if root in FORBIDDEN_IN_DOMAIN:
                errors.append(f"{py} imports forbidden module '{imp}'")
    return errors


if __name__ == "__main__":
    errs = validate_domain()
    if errs:
        print("Architecture validation failed:")
        for e in errs:
            print("-", e)
        raise SystemExit(1)
    print("Architecture validation passed")
