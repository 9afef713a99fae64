# This file is part of the MapPrint project.
# Copyright (C) 2026 MapPrint contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Thread pool for concurrent tile retrieval and a cancel token for print jobs.
"""

import queue
import sys
import threading
import time


class CancelToken(object):
    """
    Cancellation flag shared between a print job and its fetch workers.

    :param timeout: optional job deadline in seconds, the token
                    reports itself as cancelled once it expired
    """
    def __init__(self, timeout=None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        if self._event.is_set():
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self._event.set()
            return True
        return False

    def wait(self, seconds):
        """
        Sleep for `seconds` or until the token is cancelled.
        Returns ``True`` if the token was cancelled.
        """
        if self.deadline is not None:
            remaining = self.deadline - time.monotonic()
            if remaining <= seconds:
                self._event.wait(max(0.0, remaining))
                # deadline reached
                self._event.set()
                return True
        self._event.wait(seconds)
        return self.cancelled

    def __repr__(self):
        return '<CancelToken cancelled=%s>' % self.cancelled


class ThreadWorker(threading.Thread):
    def __init__(self, task_queue, result_queue):
        threading.Thread.__init__(self)
        self.task_queue = task_queue
        self.result_queue = result_queue

    def run(self):
        while True:
            task = self.task_queue.get()
            if task is None:
                self.task_queue.task_done()
                break
            func, args = task
            try:
                result = func(*args)
            except Exception:
                result = sys.exc_info()
            self.result_queue.put(result)
            self.task_queue.task_done()


def _is_exc_info(result):
    return (isinstance(result, tuple) and len(result) == 3 and
            isinstance(result[1], Exception))


def _consume_queue(q):
    """
    Get all items from queue.
    """
    while not q.empty():
        try:
            q.get(block=False)
            q.task_done()
        except queue.Empty:
            pass


class ThreadPool(object):
    """
    Fixed-size pool of worker threads.

    Each result is yielded as soon as its worker finished, in no
    particular order. Exceptions are re-raised in the consumer.
    """
    def __init__(self, size=4):
        self.pool_size = size
        self.task_queue = queue.Queue()
        self.result_queue = queue.Queue()
        self.pool = None

    def imap(self, func, *args):
        """
        Call `func` for each set of arguments from the `args` lists.

        Closing the returned iterator early drops all pending calls.
        """
        return self.map_each([(func, arg) for arg in zip(*args)])

    def map_each(self, func_args):
        """
        func_args should be a list of (func, args) tuples.
        map_each calls each function with the given args.
        """
        if self.pool_size < 2 or len(func_args) < 2:
            for func, args in func_args:
                yield func(*args)
            return

        self.pool = self._init_pool()
        for func, args in func_args:
            self.task_queue.put((func, args))

        finished = False
        try:
            for _ in range(len(func_args)):
                result = self.result_queue.get()
                if _is_exc_info(result):
                    _exc_class, exc, tb = result
                    raise exc.with_traceback(tb)
                yield result
            finished = True
        finally:
            # consumer stopped early (cancel or exception), drop pending tasks
            self.shutdown(force=not finished)

    def shutdown(self, force=False):
        """
        Send shutdown sentinel to all executor threads. If `force` is True,
        clean task_queue and result_queue.
        """
        if force:
            _consume_queue(self.task_queue)
            _consume_queue(self.result_queue)
        for _ in range(self.pool_size):
            self.task_queue.put(None)

    def _init_pool(self):
        pool = []
        for _ in range(self.pool_size):
            t = ThreadWorker(self.task_queue, self.result_queue)
            t.daemon = True
            t.start()
            pool.append(t)
        return pool
