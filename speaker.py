import logging
from array import array

import pygame

logger = logging.getLogger(__name__)


class Speaker(object):
    """
    Square wave buzzer played whenever the sound timer runs out
    """

    SAMPLE_RATE = 44100
    FREQUENCY = 440
    VOLUME = 4096

    # Length of one beep in milliseconds
    DURATION = 100

    def __init__(self, mute=False):
        self.SOUND = None

        if mute:
            return

        try:
            pygame.mixer.init(frequency=self.SAMPLE_RATE, size=-16, channels=1)
        except pygame.error as error:
            logger.warning("Audio unavailable, running without sound: %s", error)
            return

        self.SOUND = pygame.mixer.Sound(buffer=self.SQUARE_WAVE())

    @classmethod
    def SQUARE_WAVE(cls):
        """
        Signed 16-bit mono samples for one beep
        """
        period = cls.SAMPLE_RATE // cls.FREQUENCY
        samples = cls.SAMPLE_RATE * cls.DURATION // 1000

        wave = array('h', [cls.VOLUME if (i % period) < period // 2 else -cls.VOLUME for i in range(samples)])
        return wave.tobytes()

    @property
    def ENABLED(self):
        return self.SOUND is not None

    def BEEP(self):
        if self.SOUND is not None:
            self.SOUND.play()

    def DECONSTRUCTOR(self):
        if self.SOUND is not None:
            pygame.mixer.quit()
            self.SOUND = None
