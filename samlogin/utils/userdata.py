#samlogin/utils/userdata.py
import logging
import os
import shutil
import time

logger = logging.getLogger(__name__)


def clear_user_data(client_path, locator, sleep_time=1.0, max_retry=30, sleep=time.sleep):
    """
    Deletes the client's local `userdata` folder once the login window is gone.

    The client holds files in there while its login window is open, so we
    wait (up to `max_retry` checks) for the window to close first. Returns
    True when the folder was deleted.
    """
    retries = 0
    while locator.find_login_window().is_valid and retries < max_retry:
        sleep(sleep_time)
        retries += 1

    path = os.path.join(client_path, "userdata")
    if not os.path.isdir(path):
        logger.info("userdata directory not found.")
        return False

    logger.info("Deleting userdata files...")
    shutil.rmtree(path)
    logger.info("userdata files deleted!")
    return True
