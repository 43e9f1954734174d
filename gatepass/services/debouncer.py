# =======================================================================================
# gatepass/services/debouncer.py - Scan Debouncing
# =======================================================================================
import time
import threading
from collections import OrderedDict
from typing import Callable, Optional, Tuple
from ..config import config


class ScanDebouncer:
    """
    Per-device suppression of repeated camera callbacks.

    A single physical scan fires several frame callbacks; everything a device
    reports during its cooldown is treated as that one scan. This is a device
    convenience, not a security control; the validator is safe to call
    repeatedly on its own.
    """

    def __init__(self, cooldown_ms: Optional[int] = None, max_devices: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.cooldown = (cooldown_ms if cooldown_ms is not None else config.SCAN_COOLDOWN_MS) / 1000.0
        self.max_devices = max_devices if max_devices is not None else config.SCAN_CACHE_MAX
        self.clock = clock

        # key = device_session_id
        # value = (timestamp, payload)
        self._last_scan: "OrderedDict[str, Tuple[float, str]]" = OrderedDict()
        self._lock = threading.Lock()

    def should_process(self, device_session_id: str, scanned_payload: str) -> bool:
        """
        True if this scan should go on to validation.

        Frames repeating the payload that opened the cooldown restart it, so a
        pass held in front of the camera is validated once. Other payloads
        are suppressed until the cooldown runs out but do not extend it.
        """
        now = self.clock()
        with self._lock:
            item = self._last_scan.get(device_session_id)
            if item is not None:
                ts, payload = item
                if now - ts < self.cooldown:
                    if scanned_payload == payload:
                        self._last_scan[device_session_id] = (now, payload)
                    # keep most-recently-used ordering
                    self._last_scan.move_to_end(device_session_id)
                    return False

            self._last_scan[device_session_id] = (now, scanned_payload)
            self._last_scan.move_to_end(device_session_id)
            while len(self._last_scan) > self.max_devices:
                self._last_scan.popitem(last=False)
            return True

    def reset(self, device_session_id: Optional[str] = None) -> None:
        """Clear one device's cooldown, or every device's."""
        with self._lock:
            if device_session_id is None:
                self._last_scan.clear()
            else:
                self._last_scan.pop(device_session_id, None)
