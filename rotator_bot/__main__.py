from dotenv import load_dotenv

load_dotenv()

from rotator_bot.bot import main  # noqa: E402

main()
