import uvloop

from premium_bot.main import amain


def main():
    uvloop.run(amain())


if __name__ == "__main__":
    main()
