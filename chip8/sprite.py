from .errors import MemoryAccessError


def draw_sprite(framebuffer, memory, index, x, y, n):
    '''
    XOR an n-byte sprite read from memory[index..index+n) onto the framebuffer at (x, y).

    Each byte is one row of 8 pixels, most significant bit leftmost.  Sprites are clipped, never
    wrapped: a row at or below the bottom edge ends the draw, and pixels at or past the right edge
    are skipped.  Only set bits touch the screen.  Returns True if any set bit landed on a pixel
    that was already on (which the XOR turns off).  If a visible row lies outside memory nothing is drawn.
    '''
    xsize = framebuffer.xsize
    ysize = framebuffer.ysize
    vram = framebuffer.vram
    collision = False

    # rows below the screen are never read, so only the visible ones must lie inside memory
    numrows = max(0, min(n, ysize - y))
    if index < 0 or index + numrows > len(memory):
        memloc = max(index, len(memory))
        raise MemoryAccessError("Sprite row at 0x{:04X} is outside memory".format(memloc), memloc)

    for row in range(numrows):
        currenty = y + row
        val = memory[index + row]
        vramcell = currenty * xsize + x

        # avoid wrapping
        numpx = min(8, xsize - x)
        for i in range(numpx):
            if (val << i) & 0x80:
                # 0 means do nothing, so only treat the 1 case
                if vram[vramcell]:
                    collision = True
                    vram[vramcell] = 0
                else:
                    vram[vramcell] = 1
            vramcell += 1

    return collision
