from chartcraft.export.png import export_png, scene_to_image
from chartcraft.export.svg import export_svg, scene_to_svg

__all__ = ["export_png", "export_svg", "scene_to_image", "scene_to_svg"]
