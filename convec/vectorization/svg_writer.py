"""
SVG path emission for traced contours.
"""

from convec.vectorization.contour_tracer import Contour

SVG_NAMESPACE = "http://www.w3.org/2000/svg"


def format_number(value: float) -> str:
    """Print integral values without a trailing '.0'."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class SVGWriter:
    """Serializes contours as SVG path commands."""

    def __init__(self, scale: float = 1.0, fill_color: str = "#000000"):
        self.scale = scale
        self.fill_color = fill_color

    def contour_to_path(self, contour: Contour) -> str:
        """Build ``M x y L x y ... Z`` for one closed contour."""
        s = self.scale
        x0, y0 = contour[0]
        commands = [f"M {format_number(x0 * s)} {format_number(y0 * s)}"]

        for x, y in contour[1:]:
            commands.append(f"L {format_number(x * s)} {format_number(y * s)}")

        commands.append("Z")
        return " ".join(commands)

    def path_data(self, contours: list[Contour]) -> str:
        """Space-joined path data for all contours."""
        return " ".join(
            self.contour_to_path(contour) for contour in contours if len(contour) >= 2
        )

    def document(self, contours: list[Contour], width: int, height: int) -> str:
        """
        Build a complete SVG document.

        The viewBox, width and height are the scaled bitmap size; each
        contour becomes one even-odd filled path.
        """
        scaled_width = format_number(width * self.scale)
        scaled_height = format_number(height * self.scale)

        parts = [
            f'<svg xmlns="{SVG_NAMESPACE}" viewBox="0 0 {scaled_width} {scaled_height}" '
            f'width="{scaled_width}" height="{scaled_height}">'
        ]

        for contour in contours:
            if len(contour) < 2:
                continue
            parts.append(
                f'<path d="{self.contour_to_path(contour)}" '
                f'fill="{self.fill_color}" fill-rule="evenodd"/>'
            )

        parts.append("</svg>")
        return "".join(parts)
