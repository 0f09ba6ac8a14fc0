def main():
    from .localstack import localstack

    localstack()


if __name__ == "__main__":
    main()
