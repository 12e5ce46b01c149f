# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

import asyncio

from dotenv import load_dotenv

from jeopardy import logger
from jeopardy.config import parse_args
from jeopardy.site import JeopardyApplication


def main() -> None:
    load_dotenv()

    config = parse_args()
    logger.configure(local=config.local)

    loop = asyncio.new_event_loop()
    app = JeopardyApplication(loop, config)

    task = loop.create_task(app.main(), name="jeopardy-main")
    loop.run_until_complete(task)


if __name__ == "__main__":
    main()
