"""Map normalized metric values to node fill colors."""

from __future__ import annotations

import colorsys
import enum

from matplotlib import colormaps
from matplotlib.colors import to_hex, to_rgb


class Gradient(enum.Enum):
    """Sequential color gradients, keyed by their CLI name."""

    REDS = "reds"
    ORANGES = "oranges"
    PURPLES = "purples"
    GREENS = "greens"
    BLUES = "blues"
    BU_PU = "bu-pu"
    OR_RD = "or-rd"
    PU_RD = "pu-rd"
    RD_PU = "rd-pu"
    VIRIDIS = "viridis"
    CIVIDIS = "cividis"
    PLASMA = "plasma"

    @property
    def colormap_name(self) -> str:
        return _COLORMAPS[self]

    def color(
        self, t: float | None, dark_mode: bool = False, inverse: bool = False
    ) -> str:
        """Return the ``#rrggbb`` color at position *t* of the gradient.

        ``None`` means the node is not colored: white, or black in dark mode.
        """
        if t is None:
            return "#000000" if dark_mode else "#ffffff"

        t = min(max(t, 0.0), 1.0)
        if inverse:
            t = 1.0 - t
        r, g, b = to_rgb(colormaps[self.colormap_name](t))

        if dark_mode:
            h, lightness, s = colorsys.rgb_to_hls(r, g, b)
            r, g, b = colorsys.hls_to_rgb(h, 1.0 - lightness, s)

        return to_hex((r, g, b))


_COLORMAPS = {
    Gradient.REDS: "Reds",
    Gradient.ORANGES: "Oranges",
    Gradient.PURPLES: "Purples",
    Gradient.GREENS: "Greens",
    Gradient.BLUES: "Blues",
    Gradient.BU_PU: "BuPu",
    Gradient.OR_RD: "OrRd",
    Gradient.PU_RD: "PuRd",
    Gradient.RD_PU: "RdPu",
    Gradient.VIRIDIS: "viridis",
    Gradient.CIVIDIS: "cividis",
    Gradient.PLASMA: "plasma",
}
