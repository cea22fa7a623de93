import dxfcodec


arcs = [
    dxfcodec.new("ARC", handle=0x20, center=(0.0, 0.0), radius=5.0, start_angle=0.0, end_angle=90.0),
    dxfcodec.new("LINE", handle=0x21, layer="AXES", end=(5.0, 0.0, 0.0)),
]
result = dxfcodec.to_dxf(
    arcs,
    "/tmp/arc_out.dxf",
    dxf_version="R2010",
)
print(result)
