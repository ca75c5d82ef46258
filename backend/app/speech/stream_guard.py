import logging

logger = logging.getLogger("recognition_stream")


class RecognitionRestartGuard:
	"""
	Keeps recognition alive while a recording is active.
	Counts consecutive restarts and refuses once the budget is spent.
	"""

	def __init__(self, max_restarts: int, should_restart=None):
		self.max_restarts = max(0, int(max_restarts))
		self._should_restart = should_restart
		self.consecutive_restarts = 0
		self.total_restarts = 0
		self.last_event_start = 0.0
		self._stopped = False

	def note_result(self):
		self.consecutive_restarts = 0

	def stop(self):
		self._stopped = True

	def is_in_order(self, start: float) -> bool:
		start = float(start or 0.0)
		if start < self.last_event_start:
			logger.warning("Out-of-order recognition event ignored")
			return False
		self.last_event_start = start
		return True

	def reset_ordering(self):
		self.last_event_start = 0.0

	def allow_restart(self) -> bool:
		if self._stopped:
			return False

		if self._should_restart and not self._should_restart():
			return False

		if self.consecutive_restarts >= self.max_restarts:
			logger.error("Recognition restart budget exhausted | restarts=%s", self.consecutive_restarts)
			self._stopped = True
			return False

		self.consecutive_restarts += 1
		self.total_restarts += 1
		logger.info("Recognition restarting | attempt=%s", self.consecutive_restarts)
		return True
