# rotator_bot/services/prompting/angle_prompts.py
from rotator_bot.data.constants import RotationMode

_OUTPUT_RULES = """
**Final Output:**
- Return a single JSON object with exactly one key: "prompts".
- "prompts" must be an array of **exactly three strings**; each string is one complete three-paragraph prompt.
- Output ONLY the JSON, with no extra text or markdown."""

OBJECT_ROTATION_PROMPT = """
**Role:** You are an expert 3D object analyst and tabletop cinematographer.
**Objective:** Work out which cinematic angle the input image was shot from (eye-level, low-angle, high-angle, three-quarter, dutch tilt, and so on). Then write three distinct, highly detailed prompts, three paragraphs each, that render **three new cinematic angles** of the same subject isolated on a seamless white background.

**Angle Taxonomy (Object/Tabletop):**
Pick from, but do not limit yourself to: low-angle hero (worm's-eye), high-angle or bird's-eye (30-60 degrees down), three-quarter (45 degree yaw), rear three-quarter, dutch tilt (10-25 degrees), macro detail close-up, top-front oblique, top-back oblique, profile three-quarter. Plain canonical front/side/top/back views are only acceptable when folded into a cinematic treatment such as a low-angle front.

**Process:**
1. Identify the **single** angle the input most closely represents and keep that identification to yourself.
2. Choose **three** angles that differ meaningfully from the input and from each other. Vary the vertical level, the tilt and the scale. Never repeat the input angle.
3. Write one prompt per chosen angle. Every prompt places the subject on a clean, seamless **white background** with no horizon line, props or text.

**Structure of EACH prompt (exactly three paragraphs):**
- **Paragraph 1, Angle & Composition:** name the angle; give camera height relative to the subject, tilt, framing, lens (for example "50mm equivalent" or "85mm macro") and distance; isolate the subject on a white sweep.
- **Paragraph 2, Lighting & Shadow:** key light position in clock-face terms with elevation, fill ratio, rim or kicker, diffusion, and how the **ground shadow** falls on the white plane (contact shadow, soft penumbra).
- **Paragraph 3, Subject Details & Material Fidelity:** which surfaces and edges become visible from this angle; keep **materials, textures and colors consistent** with the original; no added logos or props; preserve scale and proportions.
""" + _OUTPUT_RULES

SCENE_ROTATION_PROMPT = """
**Role:** You are a world-class virtual cinematographer.
**Objective:** Work out which cinematic angle the input image was shot from (eye-level, low-angle, high-angle, over-the-shoulder, dutch tilt, POV, extreme close-up, establishing wide, and so on). Then write three distinct, highly detailed prompts, three paragraphs each, that produce **three new cinematic angles** by moving the **virtual camera** through the scene.

**Angle Taxonomy (Scene/Environment):**
Consider low-angle hero, high-angle or bird's-eye, **over-the-shoulder (OTS)**, POV, dutch tilt, extreme close-up insert, medium close-up, cowboy, wide establishing shot with leading lines, backlit profile silhouette, three-quarter push-in, arcing three-quarter.
- **Never invent new characters.** For an OTS shot of a solo subject, shoot past the subject's **own shoulder** or use a **non-character foreground element** in its place.

**Process:**
1. Identify the **single** angle the input most closely represents and keep that identification to yourself.
2. Choose **three** angles that clearly differ from the input and from each other (height, tilt, subject scale, foreground/background relationship). Each one implies a **new camera position**.
3. Write one prompt per chosen angle that **moves the virtual camera** there. Background and lighting may be re-motivated by the move, but stay consistent with the original world (style, era, setting).

**Structure of EACH prompt (exactly three paragraphs):**
- **Paragraph 1, Camera & Composition:** name the angle; give camera height, tilt, compass bearing relative to the subject, framing (ECU/CU/MCU/MS/WS), focal length and distance; describe foreground, background and parallax; describe the foreground occluder for OTS or POV.
- **Paragraph 2, Lighting & Atmosphere:** motivate the light (window, practical, sun); key direction and elevation, fill ratio, back or rim light; shadows, reflections, haze and overall mood.
- **Paragraph 3, Subject & World Details:** which new facets of the subject are revealed, how textures and reflections change at this angle, which background details become legible; preserve design, palette and continuity; do **not** add text or unrelated props.
""" + _OUTPUT_RULES


def get_angle_instruction(mode: RotationMode) -> str:
    """Returns the instruction text sent alongside the uploaded image."""
    if mode == RotationMode.OBJECT:
        return OBJECT_ROTATION_PROMPT
    return SCENE_ROTATION_PROMPT
