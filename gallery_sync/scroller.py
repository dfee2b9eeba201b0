# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Infinite-scroll convergence.

The sharing page only renders more albums as the window nears the bottom and
offers no way to request everything at once. Scroll until the document height
stops changing, with an iteration cap for pages whose height oscillates or
keeps growing.
"""

import logging
import time
from dataclasses import dataclass

from .driver import NavigationDriver, PageHandle

logger = logging.getLogger(__name__)

SCROLL_TO_BOTTOM_JS = "window.scrollTo(0, document.body.scrollHeight);"
DOCUMENT_HEIGHT_JS = "return document.body.scrollHeight;"


@dataclass
class ScrollResult:
    """Outcome of a scroll pass."""
    iterations: int
    final_height: int
    converged: bool


class ConvergenceScroller:
    """Scrolls a page to the bottom until its height converges."""

    def __init__(self, navigator: NavigationDriver, settle_seconds: float = 1.5,
                 max_iterations: int = 50, log_every: int = 5):
        self.navigator = navigator
        self.settle_seconds = settle_seconds
        self.max_iterations = max_iterations
        self.log_every = log_every

    def _height(self, page: PageHandle) -> int:
        return int(self.navigator.evaluate(page, DOCUMENT_HEIGHT_JS) or 0)

    def scroll_to_end(self, page: PageHandle) -> ScrollResult:
        """
        Scroll until two consecutive height measurements match.

        Never fails on the iteration cap: the caller proceeds with whatever
        content is loaded.
        """
        logger.info("Scrolling to load all albums...")

        previous_height = -1
        current_height = self._height(page)
        iterations = 0

        while previous_height != current_height and iterations < self.max_iterations:
            previous_height = current_height

            self.navigator.evaluate(page, SCROLL_TO_BOTTOM_JS)
            time.sleep(self.settle_seconds)

            current_height = self._height(page)
            iterations += 1

            if self.log_every and iterations % self.log_every == 0:
                logger.info(f"  Scroll attempt {iterations}, page height: {current_height}px")

        converged = previous_height == current_height
        if converged:
            logger.info(f"Finished scrolling after {iterations} attempts.")
        else:
            logger.warning(
                f"Page height did not settle after {iterations} scrolls "
                f"(last height {current_height}px); continuing with loaded content"
            )

        return ScrollResult(iterations=iterations, final_height=current_height, converged=converged)
