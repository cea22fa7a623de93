from __future__ import annotations

from enum import IntEnum


class Revision(IntEnum):
    R10 = 10
    R11 = 11
    R12 = 12
    R13 = 13
    R14 = 14
    R2000 = 2000
    R2002 = 2002
    R2004 = 2004
    R2006 = 2006
    R2008 = 2008
    R2009 = 2009
    R2010 = 2010

    @classmethod
    def parse(cls, value: "Revision | int | str") -> "Revision":
        if isinstance(value, Revision):
            return value
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip().upper()
        if text in ACAD_VERSIONS:
            return ACAD_VERSIONS[text]
        if text.startswith("R") and text[1:].isdigit():
            return cls(int(text[1:]))
        raise ValueError(f"unsupported DXF revision: {value!r}")

    @property
    def acad_version(self) -> str:
        for acad_version, revision in ACAD_VERSIONS.items():
            if revision >= self:
                return acad_version
        return "AC1024"


LATEST = Revision.R2010

# $ACADVER values. R11/R12, R2000/R2002, R2004/R2006 and R2008/R2009 share
# a file format; the later release of each pair is what a reader sees.
ACAD_VERSIONS: dict[str, Revision] = {
    "AC1006": Revision.R10,
    "AC1009": Revision.R12,
    "AC1012": Revision.R13,
    "AC1014": Revision.R14,
    "AC1015": Revision.R2002,
    "AC1018": Revision.R2006,
    "AC1021": Revision.R2009,
    "AC1024": Revision.R2010,
}


def in_range(
    revision: Revision | None,
    min_revision: Revision | None,
    max_revision: Revision | None,
) -> bool:
    if revision is None:
        return True
    if min_revision is not None and revision < min_revision:
        return False
    if max_revision is not None and revision > max_revision:
        return False
    return True
