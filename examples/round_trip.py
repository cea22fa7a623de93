import io
import logging

import dxfcodec


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    arc = dxfcodec.new("ARC", handle=0x2A, center=(1.0, 2.0), radius=3.5, start_angle=0.0, end_angle=90.0)
    for revision in ("R12", "R2010"):
        text = dxfcodec.encode(arc, "ARC", revision)
        print(f"--- {revision}")
        print(text, end="")

    text = dxfcodec.encode(arc, "ARC", "R2010") + "999\nhand edited\n  0\nEOF\n"
    diagnostics: list[dxfcodec.Diagnostic] = []
    decoded = dxfcodec.decode(dxfcodec.TagReader(io.StringIO(text)), "ARC", diagnostics=diagnostics)
    print("equal:", decoded == arc)
    for diagnostic in diagnostics:
        print("diagnostic:", diagnostic.kind, diagnostic.message)


if __name__ == "__main__":
    main()
