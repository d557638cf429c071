"""Write the discount engine OpenAPI schema as JSON.

Usage: python scripts/generate_openapi.py [output.json]  (stdout when omitted)
"""

import json
import sys

from app.main import app


def main(argv: list[str]) -> None:
    schema = json.dumps(app.openapi(), indent=2)
    if len(argv) > 1:
        with open(argv[1], "w", encoding="utf-8") as f:
            f.write(schema + "\n")
    else:
        print(schema)


if __name__ == "__main__":
    main(sys.argv)
