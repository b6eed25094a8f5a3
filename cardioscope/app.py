import sys
import logging
from PySide6.QtWidgets import QApplication
from cardioscope.events import RandomDemoSource
from cardioscope.model import Model
from cardioscope.view import View


class Application(QApplication):
    def __init__(self, sys_argv):
        super(Application, self).__init__(sys_argv)
        self._model = Model(event_source=RandomDemoSource())
        self._view = View(self._model)


def main():
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s"
    )
    app = Application(sys.argv)
    app._view.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
