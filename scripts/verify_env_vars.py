import re
from pathlib import Path


def find_settings_vars():
    """Find all environment variables declared as settings aliases."""
    content = Path("app/config.py").read_text(encoding="utf-8")
    return sorted(set(re.findall(r'alias="([A-Z0-9_]+)"', content)))


def find_example_vars(path: str = ".env.example"):
    env_file = Path(path)
    if not env_file.exists():
        return []
    names = []
    for line in env_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        names.append(line.split("=", 1)[0].strip())
    return sorted(set(names))


def verify_against_example():
    code_vars = set(find_settings_vars())
    example_vars = set(find_example_vars())
    missing_in_example = sorted(code_vars - example_vars)
    unused_in_code = sorted(example_vars - code_vars)

    print("=== ENV VAR VERIFICATION ===")
    print(f"Settings declare: {len(code_vars)} unique vars")
    print(f".env.example has: {len(example_vars)} vars")
    print("")
    if missing_in_example:
        print(f"MISSING IN .env.example ({len(missing_in_example)}):")
        for v in missing_in_example:
            print(f"  - {v}")
    else:
        print("No missing vars against .env.example.")
    print("")
    if unused_in_code:
        print(f"UNUSED IN CODE ({len(unused_in_code)}):")
        for v in unused_in_code:
            print(f"  - {v}")
    else:
        print("No unused .env.example vars.")


if __name__ == "__main__":
    verify_against_example()
