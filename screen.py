
from pygame import display, HWSURFACE, DOUBLEBUF, Color, draw


class Screen(object):

    SCREEN_HEIGHT = 32
    SCREEN_WIDTH = 64

    COLOR_DEPTH = 8

    PIXEL_OFF = Color(0, 0, 0, 255)
    PIXEL_ON = Color(255, 255, 255, 255)

    def __init__(self, SCALE=1, HEIGHT=SCREEN_HEIGHT, WIDTH=SCREEN_WIDTH):

        # Setting the screen class height, width, and scale
        self.HEIGHT = HEIGHT
        self.WIDTH = WIDTH
        self.SCALE = SCALE

        #  Initialize a variable to hold the surface but don't use it
        self.SURFACE = None

        # Initialize the screen
        self.INITIALIZE()

    def INITIALIZE(self):

        # Initialize the display from pygame
        display.init()

        # Set the surface
        self.SURFACE = display.set_mode(((self.WIDTH * self.SCALE), (self.HEIGHT * self.SCALE)), HWSURFACE | DOUBLEBUF, self.COLOR_DEPTH)

        # Setting the title of the display
        display.set_caption('CHIP-8 Emulator')

        self.CLEAR()
        self.UPDATE()

    def DRAW(self, x, y, state):

        # Setting pixel coordinates
        x_origin = x * self.SCALE
        y_origin = y * self.SCALE

        color = self.PIXEL_ON if state else self.PIXEL_OFF
        draw.rect(self.SURFACE, color, (x_origin, y_origin, self.SCALE, self.SCALE))

    def RENDER(self, framebuffer):
        """
        Paints a row-major framebuffer of WIDTH * HEIGHT booleans and flips the display
        """
        self.CLEAR()

        for index, state in enumerate(framebuffer):
            if state:
                self.DRAW(index % self.WIDTH, index // self.WIDTH, state)

        self.UPDATE()

    def CLEAR(self):
        """
        Sets the entire screen to black (PIXEL_OFF)
        """
        self.SURFACE.fill(self.PIXEL_OFF)

    def UPDATE(self):
        display.flip()

    @staticmethod
    def DECONSTRUCTOR():
        """
        Destroys the current screen object.
        """
        display.quit()
