# rotator_bot/data/texts/en.py
from .dto import BotCommandInfo, BotInfo, LocaleTexts

texts = LocaleTexts(
    commands=[
        BotCommandInfo(command="start", description="🔄 Rotate a new image"),
        BotCommandInfo(command="cancel", description="↩️ Stop and start over"),
        BotCommandInfo(command="help", description="❓ Get help"),
    ],
    bot_info=BotInfo(
        short_description="AI Object Rotator: three new angles from one photo.",
        description=(
            "Send me one photo and I will show it to you from three new camera angles. ✨\n\n"
            "Choose whether the whole scene or only the main object should rotate, "
            "then download the original and the three views as a ZIP."
        ),
    ),
    welcome=(
        "👋 Welcome to the AI Object Rotator!\n\n"
        "Send me a photo or an image file and I will generate three new views of it.\n\n"
        "Pick how the rotation should work below, then upload your image."
    ),
    help=(
        "Send one image and I will analyze it, write three camera-angle instructions "
        "and render a new view for each.\n\n"
        "• 🎥 Move the camera: the whole scene is seen from new angles.\n"
        "• 📦 Rotate only object: only the object turns, shown on a clean white background.\n\n"
        "Use /cancel to stop a run. Questions? Contact {email}"
    ),
)
