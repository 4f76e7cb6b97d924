"""页面导航状态机。

展示层的页面切换：主页、结果页、设置页，所有切换都通过显式触发。
"""

from enum import Enum

from .exceptions import CompressionError
from .utils.logging_helpers import get_logger


logger = get_logger()


class Page(str, Enum):
    """页面"""

    MAIN = "main"
    RESULTS = "results"
    SETTINGS = "settings"


class InvalidNavigation(CompressionError):
    """当前页面不允许该触发"""

    def __init__(self, trigger: str, page: Page):
        super().__init__(f"页面 {page.value} 不支持操作 {trigger}")
        self.trigger = trigger
        self.page = page


class Navigator:
    """页面导航状态机"""

    def __init__(self) -> None:
        self.page = Page.MAIN
        self.files_dropped = False
        self._return_to = Page.MAIN

    def _move(self, trigger: str, allowed: set[Page], target: Page) -> Page:
        if self.page not in allowed:
            raise InvalidNavigation(trigger, self.page)
        logger.debug(f"导航: {self.page.value} → {target.value} ({trigger})")
        self.page = target
        return target

    def drop_files(self) -> None:
        """主页收到拖入的文件"""
        if self.page is not Page.MAIN:
            raise InvalidNavigation("drop_files", self.page)
        self.files_dropped = True

    def show_results(self) -> Page:
        """运行完成后进入结果页"""
        return self._move("show_results", {Page.MAIN}, Page.RESULTS)

    def back_to_main(self) -> Page:
        """从结果页返回主页，清除拖入标记"""
        self._move("back_to_main", {Page.RESULTS}, Page.MAIN)
        self.files_dropped = False
        return self.page

    def open_settings(self) -> Page:
        """打开设置页，记住来源页面"""
        source = self.page
        self._move("open_settings", {Page.MAIN, Page.RESULTS}, Page.SETTINGS)
        self._return_to = source
        return self.page

    def close_settings(self) -> Page:
        """关闭设置页，回到来源页面"""
        return self._move("close_settings", {Page.SETTINGS}, self._return_to)
