import argparse
import struct

MZ_HEADER_FORMAT = '<2sHHHHHHHHHHH488x'

HEADER_SIZE = 0x200
PAGE_SIZE = 0x200
PARAGRAPH_SIZE = 0x10

# 64K segment less the 256 byte PSP the loader puts in front of the image
COM_ADDRESS_SPACE = 0xFF00

COM_MAX_PARAS = 0xFFFF
COM_INITIAL_SS = 0xFFF0
COM_INITIAL_SP = 0xFFFE
COM_INITIAL_IP = 0x0100
COM_INITIAL_CS = 0xFFF0

class MzHeader:
    def __init__(self,
            signature,
            partpage,
            pagecnt,
            relocnt,
            hdrsize,
            minalloc,
            maxalloc,
            initss,
            initsp,
            chksum,
            initip,
            initcs):
        self.signature = signature
        self.partpage = partpage
        self.pagecnt = pagecnt
        self.relocnt = relocnt
        self.hdrsize = hdrsize
        self.minalloc = minalloc
        self.maxalloc = maxalloc
        self.initss = initss
        self.initsp = initsp
        self.chksum = chksum
        self.initip = initip
        self.initcs = initcs

    def pack(self):
        return struct.pack(MZ_HEADER_FORMAT, *vars(self).values())

    def image_size(self):
        """Number of bytes in the load image following the header."""
        total = self.pagecnt * PAGE_SIZE
        if self.partpage:
            total -= PAGE_SIZE - self.partpage
        return total - self.hdrsize * PARAGRAPH_SIZE

    def __eq__(self, other):
        if not isinstance(other, MzHeader):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        return "MzHeader(%s)" % (", ".join("%s=%s" % pair for pair in vars(self).items()))

def from_bytes(raw):
    fields = struct.unpack(MZ_HEADER_FORMAT, raw[:HEADER_SIZE])

    return MzHeader(*fields)

def paragraphs(size):
    return (size + PARAGRAPH_SIZE - 1) // PARAGRAPH_SIZE

def build_com_header(com_size):
    """Header for a raw .COM image of com_size bytes loaded behind a 512 byte header.

    CS:IP and SS:SP are set up so the image behaves as if loaded at offset
    0x100 of a single segment, the same as DOS does for .COM files.
    """
    total_size = com_size + HEADER_SIZE
    num_pages = total_size // PAGE_SIZE
    leftover_bytes = total_size % PAGE_SIZE
    if leftover_bytes:
        num_pages += 1

    # make sure SP=0xFFFE points into allocated memory
    min_paras = 0
    if com_size < COM_ADDRESS_SPACE:
        min_paras = paragraphs(COM_ADDRESS_SPACE - com_size)

    return MzHeader(
        b"MZ",
        leftover_bytes,
        num_pages,
        0,
        paragraphs(HEADER_SIZE),
        min_paras,
        COM_MAX_PARAS,
        COM_INITIAL_SS,
        COM_INITIAL_SP,
        0,
        COM_INITIAL_IP,
        COM_INITIAL_CS
    )

def describe(header):
    lines = [
        "Signature:                          %r" % header.signature,
        "Bytes in last page:                 0x%04x" % header.partpage,
        "Number of pages (inc last):         0x%04x" % header.pagecnt,
        "Number of relocation entries:       0x%04x" % header.relocnt,
        "Header size (paragraphs):           0x%04x" % header.hdrsize,
        "Min. Memory allocated (paragraphs): 0x%04x" % header.minalloc,
        "Max. Memory allocated (paragraphs): 0x%04x" % header.maxalloc,
        "Initial Stack Segment:              0x%04x" % header.initss,
        "Initial Stack Pointer:              0x%04x" % header.initsp,
        "Checksum (0 for none):              0x%04x" % header.chksum,
        "Initial Instruction Pointer:        0x%04x" % header.initip,
        "Initial Code Segment:               0x%04x" % header.initcs,
    ]
    return "\n".join(lines)

def main(argv=None):
    parser = argparse.ArgumentParser(description="dump the MZ header of a DOS executable")
    parser.add_argument('infile')
    args = parser.parse_args(argv)
    infile = args.infile

    with open(infile, "rb") as file:
        raw = file.read(HEADER_SIZE)

    if len(raw) < HEADER_SIZE:
        print("%s: too short for a 512 byte MZ header" % infile)
        return 1

    header = from_bytes(raw)
    print(header)
    print(describe(header))
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
