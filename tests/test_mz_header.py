import struct

import pytest

import mz_header
from mz_header import MzHeader, build_com_header, from_bytes

def expected_header(partpage, pagecnt, minalloc):
    fields = struct.pack('<11H', partpage, pagecnt, 0, 32, minalloc, 0xFFFF, 0xFFF0, 0xFFFE, 0, 0x0100, 0xFFF0)
    return b"MZ" + fields + b"\x00" * 488

def test_header_is_512_bytes():
    assert len(build_com_header(100).pack()) == 512

def test_header_layout():
    # 100 + 512 = 612 bytes: two pages, 100 used in the last one
    assert build_com_header(100).pack() == expected_header(100, 2, 4074)

def test_header_field_offsets():
    raw = build_com_header(0x1234).pack()
    assert raw[0:2] == b"MZ"
    assert raw[2:4] == b"\x34\x00"
    assert raw[4:6] == b"\x0b\x00"
    assert raw[8:10] == b"\x20\x00"
    assert raw[12:14] == b"\xff\xff"
    assert raw[14:16] == b"\xf0\xff"
    assert raw[16:18] == b"\xfe\xff"
    assert raw[20:22] == b"\x00\x01"
    assert raw[22:24] == b"\xf0\xff"
    assert raw[24:] == bytes(488)

def test_empty_image():
    header = build_com_header(0)
    assert header.pagecnt == 1
    assert header.partpage == 0
    assert header.minalloc == 0xFF00 // 16

def test_page_aligned_image():
    header = build_com_header(3 * 512)
    assert header.pagecnt == 4
    assert header.partpage == 0

@pytest.mark.parametrize("size", [0, 1, 15, 16, 511, 512, 513, 0xFEFF, 0xFF00, 0x10000, 0x40000])
def test_pages_round_trip(size):
    header = build_com_header(size)
    if header.partpage:
        assert (header.pagecnt - 1) * 512 + header.partpage == size + 512
    else:
        assert header.pagecnt * 512 == size + 512
    assert header.image_size() == size

@pytest.mark.parametrize("size,minalloc", [
    (0, 0xFF0),
    (1, 0xFF0),
    (16, 0xFEF),
    (17, 0xFEF),
    (0xFEFF, 1),
    (0xFEF0, 1),
    (0xFEEF, 2),
    (0xFF00, 0),
    (0xFFFF, 0),
    (0x20000, 0),
])
def test_min_paras(size, minalloc):
    assert build_com_header(size).minalloc == minalloc

def test_from_bytes():
    header = build_com_header(4000)
    decoded = from_bytes(header.pack())
    assert decoded == header
    assert decoded.signature == b"MZ"
    assert decoded.initip == 0x100

def test_from_bytes_ignores_trailing_image():
    raw = build_com_header(10).pack() + b"\x90" * 10
    assert from_bytes(raw).partpage == 10

def test_from_bytes_short_input():
    with pytest.raises(struct.error):
        from_bytes(b"MZ" + bytes(30))

def test_oversized_image_does_not_pack():
    header = build_com_header(0x10000 * 512)
    with pytest.raises(struct.error):
        header.pack()

def test_repr():
    header = MzHeader(b"MZ", 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11)
    assert repr(header).startswith("MzHeader(signature=b'MZ', partpage=1, pagecnt=2")

def test_dump(tmp_path, capsys):
    exe = tmp_path / "prog.exe"
    exe.write_bytes(build_com_header(100).pack() + bytes(100))
    assert mz_header.main([str(exe)]) == 0
    out = capsys.readouterr().out
    assert "Header size (paragraphs):           0x0020" in out
    assert "Initial Instruction Pointer:        0x0100" in out

def test_dump_short_file(tmp_path, capsys):
    exe = tmp_path / "short.exe"
    exe.write_bytes(b"MZ" + bytes(26))
    assert mz_header.main([str(exe)]) == 1
    assert "too short" in capsys.readouterr().out
