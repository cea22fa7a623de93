import sys

import dxfcodec


def main() -> None:
    entities = [
        dxfcodec.new("LINE", handle=1, start=(0.0, 0.0, 0.0), end=(10.0, 0.0, 0.0)),
        dxfcodec.new("LINE", handle=2),
        dxfcodec.new("CIRCLE", handle=3, center=(5.0, 5.0, 0.0), radius=2.5),
    ]
    result = dxfcodec.write_entities(sys.stdout, entities, "R2000")
    for failure in result.failures:
        print(f"skipped {failure.dxftype} {failure.handle:x}: {failure.check}", file=sys.stderr)


if __name__ == "__main__":
    main()
