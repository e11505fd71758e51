#!/usr/bin/env python3
"""
Virtual Try-On - CLI

Runs the two-step upload wizard from the command line: the model photo,
then the clothing photo, then generation.

Usage:
    python main.py <model.jpg> <clothing.jpg> [--server URL] [--output DIR]

Example:
    python main.py photos/me.jpg clothing/jacket.png
    python main.py photos/me.jpg clothing/jacket.png --server http://localhost:5001
"""

import sys
from config import Settings
from services.errors import TryOnError
from services.relay_client import RelayClient
from services.result_display import ResultDisplay
from services.tryon_relay import TryOnRelay
from services.upload_wizard import UploadWizard
from services.utils import read_local_image


def print_banner():
    """Print a nice ASCII banner"""
    banner = """
╔═══════════════════════════════════════════════════════╗
║                                                       ║
║               👗 VIRTUAL TRY-ON GENERATOR 👔           ║
║                                                       ║
║              Powered by Google Gemini                 ║
║                                                       ║
╚═══════════════════════════════════════════════════════╝
"""
    print(banner)


def print_usage():
    """Print usage instructions"""
    print("\nUsage:")
    print("  python main.py <model.jpg> <clothing.jpg> [--server URL] [--output DIR]")
    print("\nExamples:")
    print("  python main.py photos/me.jpg clothing/jacket.png")
    print("  python main.py photos/me.jpg clothing/jacket.png --server http://localhost:5001")
    print("\nArguments:")
    print("  model image        Photo of the person who will wear the clothing")
    print("  clothing image     Photo of the garment")
    print("  --server URL       (Optional) Use a running try-on server instead of calling Gemini directly")
    print("  --output DIR       (Optional) Where to save the result (default: output)")
    print("\nRequirements:")
    print("  - Images up to 10MB each")
    print("  - Without --server: GEMINI_API_KEY set in your .env file")
    print()


class ConsoleProgress(ResultDisplay):
    """Result display that also prints wizard progress"""

    def __init__(self, output_dir):
        super().__init__(output_dir=output_dir)
        self._last_percent = -1

    def on_progress(self, percent):
        if percent != self._last_percent:
            self._last_percent = percent
            bar = "█" * (percent // 5) + "░" * (20 - percent // 5)
            print(f"\r   {bar} {percent:3d}%", end="", flush=True)
            if percent >= 100:
                print()


def parse_args(args):
    """
    Parse command line arguments.

    Returns:
        tuple: (image_paths, server_url, output_dir)
    """
    image_paths = []
    server_url = None
    output_dir = "output"

    i = 0
    while i < len(args):
        if args[i] in ('--server', '--output'):
            if i + 1 >= len(args):
                raise ValueError(f"{args[i]} requires a value")
            if args[i] == '--server':
                server_url = args[i + 1]
            else:
                output_dir = args[i + 1]
            i += 2
        else:
            image_paths.append(args[i])
            i += 1

    if len(image_paths) != 2:
        raise ValueError(f"Expected a model image and a clothing image, got {len(image_paths)} path(s)")

    return image_paths, server_url, output_dir


def main(argv=None):
    """Main CLI orchestrator"""
    argv = sys.argv[1:] if argv is None else argv
    print_banner()

    if not argv:
        print("❌ Error: No images provided")
        print_usage()
        return 1

    if argv[0] in ['-h', '--help', 'help']:
        print_usage()
        return 0

    try:
        (model_path, clothing_path), server_url, output_dir = parse_args(argv)
    except ValueError as e:
        print(f"❌ Error: {e}")
        print_usage()
        return 1

    settings = Settings.from_env()

    if server_url:
        relay = RelayClient(server_url, timeout=settings.relay_timeout_seconds)
        print(f"🌐 Using try-on server at {server_url}")
    else:
        relay = TryOnRelay(api_key=settings.gemini_api_key, model=settings.gemini_model)
        print(f"🤖 Calling {settings.gemini_model} directly")
    print("-" * 55)

    display = ConsoleProgress(output_dir)
    wizard = UploadWizard(
        relay,
        listener=display,
        max_file_size=settings.max_file_size,
        tick_interval=settings.progress_tick_seconds,
        display_delay=0
    )

    try:
        print("\n📸 Step 1: Model image")
        if not wizard.select_files([read_local_image(model_path)]):
            print(f"   ❌ {wizard.error}")
            return 1
        print(f"   ✓ {model_path}")
        wizard.advance()

        print("\n👕 Step 2: Clothing image")
        if not wizard.select_files([read_local_image(clothing_path)]):
            print(f"   ❌ {wizard.error}")
            return 1
        print(f"   ✓ {clothing_path}")

        print("\n🎨 Generating try-on image...")
        result = wizard.submit()
        if result is None:
            print(f"\n❌ Error: {wizard.error}")
            return 1

        saved_path = display.download()

        print("\n" + "=" * 55)
        print("✅ SUCCESS! Try-on image generated!")
        print("=" * 55)
        if saved_path:
            print(f"\n📁 Saved to {saved_path}")
        else:
            print("\n🖼  Could not save the image; opened it in your browser instead")
        print()

        return 0

    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}")
        print("   Please check that both image paths are correct.")
        return 1

    except TryOnError as e:
        print(f"\n❌ Error: {e.message}")
        return 1

    finally:
        wizard.close()


if __name__ == "__main__":
    sys.exit(main())
