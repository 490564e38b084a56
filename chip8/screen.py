from array import array

SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32


class C8Framebuffer:
    '''
    The 64x32 monochrome display, stored row-major as one byte per pixel: 0 is unset, 1 is set.
    Only the interpreter writes to it; the presentation layer reads it through export() or pixel().
    '''

    def __init__(self, xsize=SCREEN_WIDTH, ysize=SCREEN_HEIGHT):
        self.xsize = xsize
        self.ysize = ysize
        self.vram = array('B', [0 for i in range(self.xsize * self.ysize)])

    def clear(self):
        for i in range(self.xsize * self.ysize):
            self.vram[i] = 0

    def pixel(self, x, y):
        assert 0 <= x < self.xsize
        assert 0 <= y < self.ysize
        return self.vram[(y * self.xsize) + x]

    def export(self):
        # read-only copy for the presentation layer
        return self.vram.tobytes()

    def rows(self):
        for y in range(self.ysize):
            start = y * self.xsize
            yield self.vram[start:start + self.xsize].tolist()

    def __str__(self):
        return "\n".join("".join("#" if px else "." for px in row) for row in self.rows())
