from caretaker.caretaker import run

run()
