from importlib import resources


def load_stylesheet() -> str:
    with resources.files(__package__).joinpath("data/style.css").open("r", encoding="utf-8") as fh:
        return fh.read()


def load_script() -> str:
    with resources.files(__package__).joinpath("data/script.js").open("r", encoding="utf-8") as fh:
        return fh.read()


def load_defined_symbols() -> str:
    with resources.files(__package__).joinpath("data/defined_symbols.svg").open("r", encoding="utf-8") as fh:
        return fh.read()


def load_menu_buttons() -> str:
    with resources.files(__package__).joinpath("data/menu_buttons.svg").open("r", encoding="utf-8") as fh:
        return fh.read()
